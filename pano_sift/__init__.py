from pano_sift.config import SIFTConfig
from pano_sift.errors import SIFTError, InputShapeError, DimensionMismatchError
from pano_sift.keypoint import SIFTKeyPoint
from pano_sift.sift import SIFT, SIFT_create, extractFeatures

__all__ = [
    'SIFT',
    'SIFT_create',
    'SIFTConfig',
    'SIFTKeyPoint',
    'SIFTError',
    'InputShapeError',
    'DimensionMismatchError',
    'extractFeatures',
]
