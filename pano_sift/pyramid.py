import logging
from typing import Generic, Iterator, List, Sequence, Tuple, TypeVar

import numpy as np

from pano_sift.config import SIFTConfig
from pano_sift.image import gaussianSmoothing, downSample, subtractImages

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Pyramid(Generic[T]):
    """Entries indexed by (octave, level), every octave holding the same number of levels."""

    def __init__(self, octaves: Sequence[Sequence[T]]) -> None:
        self._octaves: List[List[T]] = [list(levels) for levels in octaves]
        if not self._octaves:
            raise ValueError('a pyramid needs at least one octave')
        self.num_levels: int = len(self._octaves[0])
        if any(len(levels) != self.num_levels for levels in self._octaves):
            raise ValueError('all octaves of a pyramid must have the same number of levels')

    @property
    def num_octaves(self) -> int:
        return len(self._octaves)

    def _check(self, octave: int, level: int):
        if not 0 <= octave < self.num_octaves:
            raise IndexError(f'octave {octave} out of range [0, {self.num_octaves})')
        if not 0 <= level < self.num_levels:
            raise IndexError(f'level {level} out of range [0, {self.num_levels})')

    def __getitem__(self, index: Tuple[int, int]) -> T:
        octave, level = index
        self._check(octave, level)
        return self._octaves[octave][level]

    def __iter__(self) -> Iterator[List[T]]:
        return (list(levels) for levels in self._octaves)

    def __len__(self) -> int:
        return self.num_octaves


class ScaleSpace:
    """Gaussian pyramid, DoG pyramid and the sigma table they were built with."""

    def __init__(self, gaussian: Pyramid, dog: Pyramid, sigmas: np.ndarray) -> None:
        self.gaussian: Pyramid = gaussian
        self.dog: Pyramid = dog
        self.sigmas: np.ndarray = sigmas

    @property
    def num_octaves(self) -> int:
        return self.gaussian.num_octaves

    def sigma(self, octave: int, level: int) -> float:
        """Absolute smoothing sigma used to generate Gaussian level (octave, level)."""
        if not 0 <= octave < self.sigmas.shape[0] or not 0 <= level < self.sigmas.shape[1]:
            raise IndexError(f'no sigma for (octave={octave}, level={level})')
        return float(self.sigmas[octave, level])


def computeNumberOfOctaves(image_shape: Tuple[int, int]) -> int:
    """Octave count derived from the smaller image dimension, keeping every octave at least 2x2."""
    smallest = min(image_shape)
    num_octaves = int(round(np.log2(smallest))) - 1
    # each octave halves the image; the last one still has to be at least 2 pixels wide
    max_octaves = int(np.floor(np.log2(smallest)))
    return max(1, min(num_octaves, max_octaves))


def generateSigmas(sigma: float, num_intervals: int) -> np.ndarray:
    """Per-step smoothing sigmas: sigma * k^i for the num_intervals + 3 levels of an octave."""
    k = 2 ** (1. / num_intervals)
    sigmas = np.zeros(num_intervals + 3)
    sigmas[0] = sigma
    for image_index in range(1, num_intervals + 3):
        sigmas[image_index] = sigmas[image_index - 1] * k
    return sigmas


def buildGaussianPyramid(gray_image: np.ndarray, num_octaves: int, sigmas: np.ndarray,
                         num_intervals: int, die_off: float) -> Pyramid:
    gaussian_images = []

    # the first octave starts from the gray image itself, later ones from a down-sample
    base = gray_image
    for octave_index in range(num_octaves):
        if octave_index > 0:
            base = downSample(gaussian_images[-1][num_intervals])

        octave_images = [gaussianSmoothing(base, sigmas[0], die_off) if octave_index == 0 else base]
        # kernel applied to the previous level, smoothing accumulates
        for step_sigma in sigmas[1:]:
            octave_images.append(gaussianSmoothing(octave_images[-1], step_sigma, die_off))

        logger.debug('Octave %d: %d levels of shape %s', octave_index, len(octave_images), base.shape)
        gaussian_images.append(octave_images)

    return Pyramid(gaussian_images)


def buildDoGPyramid(gaussian_pyramid: Pyramid) -> Pyramid:
    dog_images = []
    for octave_images in gaussian_pyramid:
        dog_images.append([subtractImages(upper, lower)
                           for lower, upper in zip(octave_images, octave_images[1:])])
    return Pyramid(dog_images)


def buildScaleSpace(gray_image: np.ndarray, config: SIFTConfig) -> ScaleSpace:
    num_octaves = config.octaves or computeNumberOfOctaves(gray_image.shape)
    sigmas = generateSigmas(config.sigma, config.scales)

    logger.debug('Building scale space: %d octaves, %d intervals, sigmas %s',
                 num_octaves, config.scales, np.round(sigmas, 3))

    gaussian = buildGaussianPyramid(gray_image, num_octaves, sigmas, config.scales, config.gaussian_die_off)
    dog = buildDoGPyramid(gaussian)

    # the table is carried forward unscaled, the octave holds the physical scale
    sigma_table = np.tile(sigmas, (num_octaves, 1))
    return ScaleSpace(gaussian, dog, sigma_table)
