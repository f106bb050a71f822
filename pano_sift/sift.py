from collections import Counter
from typing import List, Optional, Tuple
import logging

import numpy as np

from pano_sift.config import SIFTConfig
from pano_sift.descriptor import computeDescriptors
from pano_sift.extrema import findScaleSpaceExtrema, localizeExtremum
from pano_sift.image import toGray64F
from pano_sift.keypoint import SIFTKeyPoint
from pano_sift.orientation import assignOrientations, buildGradientFields
from pano_sift.pyramid import Pyramid, ScaleSpace, buildScaleSpace

logger = logging.getLogger(__name__)


class SIFT:

    def __init__(self, num_octaves=None, num_octave_intervals=None, sigma=None,
                 config: Optional[SIFTConfig] = None) -> None:

        if config is None:
            config = SIFTConfig(octaves=num_octaves, scales=num_octave_intervals, sigma=sigma)
        elif num_octaves is not None or num_octave_intervals is not None or sigma is not None:
            raise ValueError('pass either a config or individual parameters, not both')

        self.config: SIFTConfig = config

    def buildScaleSpace(self, image) -> ScaleSpace:
        """Gaussian pyramid, DoG pyramid and sigma table of an input raster."""
        return buildScaleSpace(toGray64F(image), self.config)

    def _findKeypoints(self, scale_space: ScaleSpace) -> List[SIFTKeyPoint]:
        candidates = findScaleSpaceExtrema(scale_space.dog, self.config)

        keypoints = []
        outcomes = Counter()
        for candidate in candidates:
            result = localizeExtremum(scale_space.dog, candidate, self.config)
            outcomes[result.status.value] += 1
            if result.accepted:
                keypoints.append(result.keypoint)

        logger.debug('Localization of %d candidates: %s', len(candidates), dict(outcomes))
        return keypoints

    def _detect(self, image) -> Tuple[List[SIFTKeyPoint], ScaleSpace, Pyramid]:
        scale_space = self.buildScaleSpace(image)
        keypoints = self._findKeypoints(scale_space)

        gradient_fields = buildGradientFields(scale_space.gaussian)
        keypoints = assignOrientations(keypoints, gradient_fields, scale_space, self.config)
        return keypoints, scale_space, gradient_fields

    def detect(self, image) -> List[SIFTKeyPoint]:
        """Oriented keypoints of ``image``, without descriptors."""
        keypoints, _, _ = self._detect(image)
        return keypoints

    def detectAndCompute(self, image) -> Tuple[List[SIFTKeyPoint], np.ndarray]:
        """Oriented keypoints of ``image`` and their (N, 128) descriptors.

        Every keypoint also owns its own descriptor row as ``keypoint.descriptor``.
        """
        keypoints, scale_space, gradient_fields = self._detect(image)
        descriptors = computeDescriptors(keypoints, gradient_fields, scale_space, self.config)
        logger.info('Extracted %d features from image of shape %s', len(keypoints), np.shape(image))
        return keypoints, descriptors


def SIFT_create(num_octaves=None, num_octave_intervals=None, sigma=None) -> SIFT:
    return SIFT(num_octaves=num_octaves, num_octave_intervals=num_octave_intervals, sigma=sigma)


def extractFeatures(image, octaves: Optional[int], scales: int, sigma: float) -> List[SIFTKeyPoint]:
    """Keypoints with orientation and descriptor for a decoded raster.

    Coordinates are octave-local; use ``SIFTKeyPoint.imagePoint`` for original-image pixels.
    """
    keypoints, _ = SIFT_create(octaves, scales, sigma).detectAndCompute(image)
    return keypoints
