import logging
from typing import List, Tuple

import numpy as np

from pano_sift.config import SIFTConfig
from pano_sift.constants import SIFT_BORDER_MAG, SIFT_BORDER_ORI
from pano_sift.keypoint import SIFTKeyPoint
from pano_sift.pyramid import Pyramid, ScaleSpace

logger = logging.getLogger(__name__)

TWO_PI = 2 * np.pi


def normalizeAngle(angle):
    """Wrap an angle (or array of angles) into [0, 2*pi)."""
    wrapped = np.mod(angle, TWO_PI)
    # mod of a tiny negative value rounds up to exactly 2*pi
    wrapped = np.where(wrapped >= TWO_PI, 0., wrapped)
    return float(wrapped) if np.ndim(wrapped) == 0 else wrapped


def computeGradientField(image: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Central-difference gradient magnitude and orientation of one pyramid level.

    Border pixels carry the sentinel (magnitude 0, orientation pi).
    """
    magnitude = np.full(image.shape, SIFT_BORDER_MAG, dtype=np.float64)
    orientation = np.full(image.shape, SIFT_BORDER_ORI, dtype=np.float64)
    if image.shape[0] < 3 or image.shape[1] < 3:
        return magnitude, orientation

    dx = image[1:-1, 2:] - image[1:-1, :-2]
    dy = image[2:, 1:-1] - image[:-2, 1:-1]
    flat = (dx == 0) & (dy == 0)

    magnitude[1:-1, 1:-1] = np.sqrt(dx * dx + dy * dy)
    orientation[1:-1, 1:-1] = np.where(flat, 0., normalizeAngle(np.arctan2(dy, dx)))
    return magnitude, orientation


def buildGradientFields(gaussian_pyramid: Pyramid) -> Pyramid:
    return Pyramid([[computeGradientField(image) for image in octave_images]
                    for octave_images in gaussian_pyramid])


def smoothHistogram(histogram: np.ndarray, passes: int) -> np.ndarray:
    for _ in range(passes):
        histogram = 0.25 * np.roll(histogram, 1) + 0.5 * histogram + 0.25 * np.roll(histogram, -1)
    return histogram


def computeOrientationHistogram(magnitude: np.ndarray, orientation: np.ndarray, keypoint: SIFTKeyPoint,
                                sigma: float, config: SIFTConfig) -> np.ndarray:
    image_height, image_width = magnitude.shape
    num_bins = config.ori_hist_bins

    scale = config.ori_sig_factor * sigma
    radius = int(np.round(config.ori_radius_factor * scale))
    weight_factor = -0.5 / (scale ** 2)

    center_x, center_y = int(np.round(keypoint.x)), int(np.round(keypoint.y))
    offsets = np.arange(-radius, radius + 1)
    di, dj = np.meshgrid(offsets, offsets, indexing='ij')
    rows, cols = center_y + di, center_x + dj

    inside = (di * di + dj * dj <= radius * radius) & \
        (rows > 0) & (rows < image_height - 1) & (cols > 0) & (cols < image_width - 1)
    rows, cols, di, dj = rows[inside], cols[inside], di[inside], dj[inside]

    weights = np.exp(weight_factor * (di * di + dj * dj))
    histogram_index = np.round(orientation[rows, cols] * num_bins / TWO_PI).astype(int) % num_bins

    raw_histogram = np.zeros(num_bins)
    np.add.at(raw_histogram, histogram_index, weights * magnitude[rows, cols])
    return smoothHistogram(raw_histogram, config.ori_smooth_passes)


def computeOrientations(magnitude: np.ndarray, orientation: np.ndarray, keypoint: SIFTKeyPoint,
                        sigma: float, config: SIFTConfig) -> List[float]:
    """Dominant gradient orientations (radians) around a keypoint, strongest first."""
    num_bins = config.ori_hist_bins
    smooth_histogram = computeOrientationHistogram(magnitude, orientation, keypoint, sigma, config)

    orientation_max = smooth_histogram.max()
    left = np.roll(smooth_histogram, 1)
    right = np.roll(smooth_histogram, -1)
    orientation_peaks = np.where((smooth_histogram > left) & (smooth_histogram > right) &
                                 (smooth_histogram >= config.ori_peak_ratio * orientation_max))[0]

    # strongest peak first, so the original keypoint keeps the dominant orientation
    orientation_peaks = sorted(orientation_peaks, key=lambda index: -smooth_histogram[index])

    orientations = []
    for peak_index in orientation_peaks:
        peak_value = smooth_histogram[peak_index]
        left_value = left[peak_index]
        right_value = right[peak_index]
        # parabola through the peak and its neighbours
        interpolated_peak_index = peak_index + 0.5 * (left_value - right_value) / (left_value - 2 * peak_value + right_value)
        orientations.append(normalizeAngle(interpolated_peak_index * TWO_PI / num_bins))

    return orientations


def assignOrientations(keypoints: List[SIFTKeyPoint], gradient_fields: Pyramid, scale_space: ScaleSpace,
                       config: SIFTConfig) -> List[SIFTKeyPoint]:
    """Give every keypoint its dominant orientation, cloning it once per extra peak."""
    oriented = []
    for keypoint in keypoints:
        magnitude, orientation = gradient_fields[keypoint.octave, keypoint.interval]
        sigma = scale_space.sigma(keypoint.octave, keypoint.interval)
        orientations = computeOrientations(magnitude, orientation, keypoint, sigma, config)

        if not orientations:
            logger.debug('No dominant orientation for %r, keeping 0', keypoint)
            oriented.append(keypoint)
            continue

        keypoint.orientation = orientations[0]
        oriented.append(keypoint)
        for extra_orientation in orientations[1:]:
            oriented.append(keypoint.clone(extra_orientation))

    logger.debug('%d keypoints after orientation assignment', len(oriented))
    return oriented
