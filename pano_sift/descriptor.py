import logging
from itertools import product
from typing import List

import numpy as np

from pano_sift.config import SIFTConfig
from pano_sift.constants import FLOAT_TOLERANCE
from pano_sift.keypoint import SIFTKeyPoint
from pano_sift.orientation import normalizeAngle, TWO_PI
from pano_sift.pyramid import Pyramid, ScaleSpace

logger = logging.getLogger(__name__)


def normalizeDescriptor(descriptor_vector: np.ndarray, max_value: float) -> np.ndarray:
    """Unit-normalize, clip every component at ``max_value`` and unit-normalize again.

    A vector without any gradient energy stays all zeros.
    """
    norm = np.linalg.norm(descriptor_vector)
    if norm < FLOAT_TOLERANCE:
        return np.zeros_like(descriptor_vector)

    descriptor_vector = np.minimum(descriptor_vector / norm, max_value)
    return descriptor_vector / max(np.linalg.norm(descriptor_vector), FLOAT_TOLERANCE)


def computeDescriptor(magnitude: np.ndarray, orientation: np.ndarray, keypoint: SIFTKeyPoint,
                      sigma: float, config: SIFTConfig) -> np.ndarray:
    """Rotation-normalized 4x4x8 gradient histogram flattened to a 128-vector."""
    window_width = config.descr_width
    num_bins = config.descr_hist_bins
    num_rows, num_cols = magnitude.shape

    hist_width = config.descr_scale_factor * sigma
    half_width = int(np.round(np.sqrt(0.5) * hist_width * (window_width + 1)))
    # ensure half_width lies within image
    half_width = int(min(half_width, np.sqrt(num_rows ** 2 + num_cols ** 2)))

    angle = keypoint.orientation
    cos_angle, sin_angle = np.cos(angle), np.sin(angle)
    weight_multiplier = -0.5 / ((0.5 * window_width) ** 2)

    center_x, center_y = int(np.round(keypoint.x)), int(np.round(keypoint.y))
    offsets = np.arange(-half_width, half_width + 1)
    row_offsets, col_offsets = np.meshgrid(offsets, offsets, indexing='ij')
    window_rows, window_cols = center_y + row_offsets, center_x + col_offsets

    inside = (row_offsets ** 2 + col_offsets ** 2 <= half_width ** 2) & \
        (window_rows > 0) & (window_rows < num_rows - 1) & \
        (window_cols > 0) & (window_cols < num_cols - 1)
    row_offsets, col_offsets = row_offsets[inside], col_offsets[inside]
    window_rows, window_cols = window_rows[inside], window_cols[inside]

    # rotate by -angle, in units of histogram cells
    col_rot = (col_offsets * cos_angle + row_offsets * sin_angle) / hist_width
    row_rot = (-col_offsets * sin_angle + row_offsets * cos_angle) / hist_width
    col_bin = col_rot + 0.5 * window_width - 0.5
    row_bin = row_rot + 0.5 * window_width - 0.5

    in_window = (row_bin >= -1) & (row_bin < window_width) & (col_bin >= -1) & (col_bin < window_width)
    row_bin, col_bin = row_bin[in_window], col_bin[in_window]
    row_rot, col_rot = row_rot[in_window], col_rot[in_window]
    window_rows, window_cols = window_rows[in_window], window_cols[in_window]

    weight = np.exp(weight_multiplier * (row_rot ** 2 + col_rot ** 2))
    weighted_magnitude = weight * magnitude[window_rows, window_cols]
    relative_orientation = normalizeAngle(orientation[window_rows, window_cols] - angle)
    orientation_bin = relative_orientation * num_bins / TWO_PI

    # Smoothing via trilinear interpolation: each sample is split between the
    # floor and floor + 1 cell along every axis by its fractional part
    row_floor = np.floor(row_bin).astype(int)
    col_floor = np.floor(col_bin).astype(int)
    orientation_floor = np.floor(orientation_bin).astype(int)
    row_fraction = row_bin - row_floor
    col_fraction = col_bin - col_floor
    orientation_fraction = orientation_bin - orientation_floor

    histogram_tensor = np.zeros((window_width, window_width, num_bins))
    for d_row, d_col, d_ori in product((0, 1), repeat=3):
        target_row = row_floor + d_row
        target_col = col_floor + d_col
        target_ori = (orientation_floor + d_ori) % num_bins
        contribution = weighted_magnitude * \
            (row_fraction if d_row else 1 - row_fraction) * \
            (col_fraction if d_col else 1 - col_fraction) * \
            (orientation_fraction if d_ori else 1 - orientation_fraction)

        valid = (target_row >= 0) & (target_row < window_width) & \
            (target_col >= 0) & (target_col < window_width)
        np.add.at(histogram_tensor,
                  (target_row[valid], target_col[valid], target_ori[valid]),
                  contribution[valid])

    return normalizeDescriptor(histogram_tensor.flatten(), config.descr_mag_threshold)


def computeDescriptors(keypoints: List[SIFTKeyPoint], gradient_fields: Pyramid, scale_space: ScaleSpace,
                       config: SIFTConfig) -> np.ndarray:
    """Fill in every keypoint's descriptor and return them stacked, one row per keypoint."""
    descriptor_length = config.descr_width * config.descr_width * config.descr_hist_bins
    descriptors = np.zeros((len(keypoints), descriptor_length))

    for index, keypoint in enumerate(keypoints):
        magnitude, orientation = gradient_fields[keypoint.octave, keypoint.interval]
        sigma = scale_space.sigma(keypoint.octave, keypoint.interval)
        descriptor_vector = computeDescriptor(magnitude, orientation, keypoint, sigma, config)
        keypoint.descriptor = descriptor_vector
        descriptors[index] = descriptor_vector

    logger.debug('Computed %d descriptors', len(keypoints))
    return descriptors
