import logging

import numpy as np

from cv2 import copyMakeBorder, filter2D, BORDER_CONSTANT, CV_64F

from pano_sift.constants import SIFT_GAUSS_DIE_OFF
from pano_sift.errors import InputShapeError, DimensionMismatchError

logger = logging.getLogger(__name__)


def _checkGray64F(image: np.ndarray, stage: str):
    if image.ndim != 2:
        raise InputShapeError(f'{stage}: expected a single-channel image, got shape {image.shape}')
    if image.dtype != np.float64:
        raise InputShapeError(f'{stage}: expected a float64 image, got {image.dtype}')


def convertRGBToGray64F(image: np.ndarray) -> np.ndarray:
    """Convert a color raster to a float64 gray image in [0, 1].

    The gray value is the unweighted mean of the first three channels, so the
    channel order (RGB or BGR) does not matter. A fourth (alpha) channel is ignored.
    """
    if image.ndim != 3:
        raise InputShapeError(f'expected a color image of shape (h, w, c), got shape {image.shape}')
    if image.shape[2] not in (3, 4):
        raise InputShapeError(f'expected 3 or 4 channels, got {image.shape[2]}')
    if not np.issubdtype(image.dtype, np.unsignedinteger):
        raise InputShapeError(f'expected an unsigned integer raster, got {image.dtype}')

    max_value = float(np.iinfo(image.dtype).max)
    channels = image[:, :, :3].astype(np.float64)
    return channels.sum(axis=2) / (3 * max_value)


def toGray64F(image: np.ndarray) -> np.ndarray:
    """Bring an input raster into the pipeline's working format.

    Color rasters go through :func:`convertRGBToGray64F`. Gray unsigned integer rasters
    are scaled by their dtype maximum; gray float rasters are taken to be in [0, 1] already.
    """
    image = np.asarray(image)
    logger.debug('Converting raster of shape %s (%s) to gray', image.shape, image.dtype)
    if image.ndim == 3:
        return convertRGBToGray64F(image)
    if image.ndim != 2:
        raise InputShapeError(f'expected a 2D or 3D raster, got shape {image.shape}')
    if np.issubdtype(image.dtype, np.unsignedinteger):
        return image.astype(np.float64) / float(np.iinfo(image.dtype).max)
    if np.issubdtype(image.dtype, np.floating):
        return image.astype(np.float64)
    raise InputShapeError(f'unsupported gray raster dtype {image.dtype}')


def gaussianKernel(sigma: float, die_off: float = SIFT_GAUSS_DIE_OFF) -> np.ndarray:
    """Normalized, symmetric 1D gaussian kernel truncated once exp(-i^2 / 2 sigma^2) < die_off.

    The kernel always has odd length; a very small sigma yields the identity kernel ``[1.]``.
    """
    if sigma <= 0:
        raise ValueError(f'sigma must be > 0, got {sigma}')

    half_kernel = []
    i = 0
    while True:
        value = np.exp(-i * i / (2. * sigma * sigma))
        if value < die_off:
            break
        half_kernel.append(value)
        i += 1

    half_kernel = np.array(half_kernel)
    kernel = np.concatenate([half_kernel[:0:-1], half_kernel])
    return kernel / kernel.sum()


def convolve(image: np.ndarray, kernel: np.ndarray, a: int, b: int) -> np.ndarray:
    """Correlate ``image`` with a (2a+1) x (2b+1) kernel given in row-major order.

    The source is zero padded by ``a`` rows and ``b`` columns on every side, so
    the output has the same size as the input and edge pixels see zeros outside.
    """
    _checkGray64F(image, 'convolve')
    kernel = np.asarray(kernel, dtype=np.float64)
    if kernel.size != (2 * a + 1) * (2 * b + 1):
        raise DimensionMismatchError(
            f'kernel of length {kernel.size} does not match radii ({a}, {b})')

    padded = copyMakeBorder(image, a, a, b, b, BORDER_CONSTANT, value=0)
    filtered = filter2D(padded, CV_64F, kernel.reshape(2 * a + 1, 2 * b + 1),
                        borderType=BORDER_CONSTANT)
    return filtered[a:a + image.shape[0], b:b + image.shape[1]].copy()


def gaussianSmoothing(image: np.ndarray, sigma: float, die_off: float = SIFT_GAUSS_DIE_OFF) -> np.ndarray:
    kernel = gaussianKernel(sigma, die_off)
    half = kernel.size // 2
    # horizontal pass then vertical pass
    smoothed = convolve(image, kernel, 0, half)
    return convolve(smoothed, kernel, half, 0)


def upSample(image: np.ndarray) -> np.ndarray:
    """Double both dimensions using linear interpolation.

    The last two rows and columns of the output lie beyond the reach of the
    forward differences and replicate the nearest source edge value.
    """
    _checkGray64F(image, 'upSample')
    rows, cols = image.shape
    upsampled = np.empty((rows * 2, cols * 2), dtype=np.float64)

    top_left = image[:-1, :-1]
    bottom_left = image[1:, :-1]
    top_right = image[:-1, 1:]
    bottom_right = image[1:, 1:]
    inner_rows, inner_cols = 2 * rows - 2, 2 * cols - 2

    upsampled[0:inner_rows:2, 0:inner_cols:2] = top_left
    upsampled[1:inner_rows:2, 0:inner_cols:2] = (top_left + bottom_left) / 2.
    upsampled[0:inner_rows:2, 1:inner_cols:2] = (top_left + top_right) / 2.
    upsampled[1:inner_rows:2, 1:inner_cols:2] = (top_left + bottom_left + top_right + bottom_right) / 4.

    # replicate the source edges into the remaining rows and columns
    upsampled[inner_rows:, :] = np.repeat(image[-1, :], 2)[np.newaxis, :]
    upsampled[:, inner_cols:] = np.repeat(image[:, -1], 2)[:, np.newaxis]
    return upsampled


def downSample(image: np.ndarray) -> np.ndarray:
    """Halve both dimensions (integer division), averaging each 2x2 block."""
    _checkGray64F(image, 'downSample')
    rows, cols = image.shape[0] // 2, image.shape[1] // 2
    if rows == 0 or cols == 0:
        raise InputShapeError(f'image of shape {image.shape} is too small to down-sample')

    blocks = image[:rows * 2, :cols * 2].reshape(rows, 2, cols, 2)
    return blocks.mean(axis=(1, 3))


def subtractImages(minuend: np.ndarray, subtrahend: np.ndarray) -> np.ndarray:
    if minuend.shape != subtrahend.shape:
        raise DimensionMismatchError(
            f'cannot subtract images of shapes {minuend.shape} and {subtrahend.shape}')
    return np.subtract(minuend, subtrahend)
