import logging
from enum import Enum
from typing import List, NamedTuple, Optional

import numpy as np

from pano_sift.config import SIFTConfig
from pano_sift.keypoint import SIFTKeyPoint
from pano_sift.pyramid import Pyramid

logger = logging.getLogger(__name__)


class Candidate(NamedTuple):
    """A discrete DoG extremum: octave, DoG interval, row and column."""
    octave: int
    interval: int
    row: int
    col: int


class LocalizationStatus(Enum):
    ACCEPTED = 'accepted'
    LOW_CONTRAST = 'low_contrast'
    EDGE = 'edge'
    DIVERGED_BORDER = 'diverged_border'
    DIVERGED_MAX_STEPS = 'diverged_max_steps'


class LocalizationResult(NamedTuple):
    status: LocalizationStatus
    keypoint: Optional[SIFTKeyPoint] = None
    steps: int = 0

    @property
    def accepted(self) -> bool:
        return self.status is LocalizationStatus.ACCEPTED


def getPixelCube(dog: Pyramid, octave: int, interval: int, row: int, col: int) -> np.ndarray:
    """3x3x3 neighbourhood indexed as [interval, row, col] around the given sample."""
    slicer = (slice(row - 1, row + 2), slice(col - 1, col + 2))
    return np.stack([dog[octave, interval - 1][slicer],
                     dog[octave, interval][slicer],
                     dog[octave, interval + 1][slicer]])


def isExtremum(pixel_cube: np.ndarray, threshold: float) -> bool:
    center = pixel_cube[1, 1, 1]
    if abs(center) <= threshold:
        return False
    # the cube contains the center itself, which trivially compares equal
    return bool(np.all(center >= pixel_cube) or np.all(center <= pixel_cube))


def findScaleSpaceExtrema(dog: Pyramid, config: SIFTConfig) -> List[Candidate]:
    """Scan interior DoG samples of intervals 1..S for 26-neighbour extrema."""
    threshold = config.prelim_contrast_threshold
    border = config.border
    candidates = []

    for octave_index in range(dog.num_octaves):
        for interval in range(1, dog.num_levels - 1):
            middle_img = dog[octave_index, interval]
            image_height, image_width = middle_img.shape
            if image_height <= 2 * border or image_width <= 2 * border:
                continue

            interior = np.abs(middle_img[border:image_height - border, border:image_width - border]) > threshold
            for i, j in np.argwhere(interior):
                row, col = int(i) + border, int(j) + border
                pixel_cube = getPixelCube(dog, octave_index, interval, row, col)
                if isExtremum(pixel_cube, threshold):
                    candidates.append(Candidate(octave_index, interval, row, col))

    logger.debug('Found %d candidate extrema', len(candidates))
    return candidates


def computeGradient(pixel_cube: np.ndarray) -> np.ndarray:
    dx = 0.5 * (pixel_cube[1, 1, 2] - pixel_cube[1, 1, 0])
    dy = 0.5 * (pixel_cube[1, 2, 1] - pixel_cube[1, 0, 1])
    ds = 0.5 * (pixel_cube[2, 1, 1] - pixel_cube[0, 1, 1])
    return np.array([dx, dy, ds])


def computeHessian(pixel_cube: np.ndarray) -> np.ndarray:
    center_pixel_value = pixel_cube[1, 1, 1]
    dxx = pixel_cube[1, 1, 2] - 2 * center_pixel_value + pixel_cube[1, 1, 0]
    dyy = pixel_cube[1, 2, 1] - 2 * center_pixel_value + pixel_cube[1, 0, 1]
    dss = pixel_cube[2, 1, 1] - 2 * center_pixel_value + pixel_cube[0, 1, 1]
    dxy = 0.25 * (pixel_cube[1, 2, 2] - pixel_cube[1, 2, 0] - pixel_cube[1, 0, 2] + pixel_cube[1, 0, 0])
    dxs = 0.25 * (pixel_cube[2, 1, 2] - pixel_cube[2, 1, 0] - pixel_cube[0, 1, 2] + pixel_cube[0, 1, 0])
    dys = 0.25 * (pixel_cube[2, 2, 1] - pixel_cube[2, 0, 1] - pixel_cube[0, 2, 1] + pixel_cube[0, 0, 1])
    return np.array([[dxx, dxy, dxs],
                     [dxy, dyy, dys],
                     [dxs, dys, dss]])


def isEdge(dog_image: np.ndarray, row: int, col: int, edge_ratio_limit: float) -> bool:
    """Principal curvature test on the 2x2 spatial Hessian at (row, col).

    ``edge_ratio_limit`` is (r + 1)^2 / r for the largest accepted curvature ratio r.
    """
    patch = dog_image[row - 1:row + 2, col - 1:col + 2]
    center = patch[1, 1]
    dxx = patch[1, 2] - 2 * center + patch[1, 0]
    dyy = patch[2, 1] - 2 * center + patch[0, 1]
    dxy = 0.25 * (patch[2, 2] - patch[2, 0] - patch[0, 2] + patch[0, 0])

    trace = dxx + dyy
    det = dxx * dyy - dxy * dxy
    # curvatures of opposite sign
    if det <= 0:
        return True
    return trace ** 2 / det >= edge_ratio_limit


def localizeExtremum(dog: Pyramid, candidate: Candidate, config: SIFTConfig) -> LocalizationResult:
    """Refine a candidate to continuous (x, y, scale) by repeated quadratic fits."""
    octave, interval, row, col = candidate
    image_height, image_width = dog[octave, interval].shape
    max_interval = dog.num_levels - 2

    steps = 0
    for steps in range(1, config.max_interp_steps + 1):
        pixel_cube = getPixelCube(dog, octave, interval, row, col)
        gradient = computeGradient(pixel_cube)
        hessian = computeHessian(pixel_cube)
        # least squares goes through the SVD, so a singular hessian still gives a finite offset
        offset = -np.linalg.lstsq(hessian, gradient, rcond=None)[0]
        if np.all(np.abs(offset) < 0.5):
            break

        col += int(np.round(offset[0]))
        row += int(np.round(offset[1]))
        interval += int(np.round(offset[2]))
        if row < config.border or row >= image_height - config.border or \
                col < config.border or col >= image_width - config.border or \
                interval < 1 or interval > max_interval:
            return LocalizationResult(LocalizationStatus.DIVERGED_BORDER, steps=steps)
    else:
        return LocalizationResult(LocalizationStatus.DIVERGED_MAX_STEPS, steps=steps)

    value_at_extremum = pixel_cube[1, 1, 1] + 0.5 * np.dot(gradient, offset)
    if abs(value_at_extremum) < config.contrast_threshold:
        return LocalizationResult(LocalizationStatus.LOW_CONTRAST, steps=steps)

    if isEdge(dog[octave, interval], row, col, config.edge_ratio_limit):
        return LocalizationResult(LocalizationStatus.EDGE, steps=steps)

    keypoint = SIFTKeyPoint(
        x=col + float(offset[0]),
        y=row + float(offset[1]),
        octave=octave,
        interval=interval,
        response=float(abs(value_at_extremum)),
        scale_offset=float(offset[2]),
        size=config.sigma * (2 ** ((interval + offset[2]) / config.scales)) * (2 ** octave),
    )
    return LocalizationResult(LocalizationStatus.ACCEPTED, keypoint, steps)
