from copy import deepcopy
from typing import Optional, Tuple

import numpy as np


class SIFTKeyPoint:
    """A localized feature in the coordinate frame of its octave.

    ``interval`` is the DoG interval (equivalently the Gaussian level) the feature was
    localized at. ``orientation`` is in radians, in [0, 2*pi).
    """

    def __init__(self, x: float, y: float, octave: int, interval: int, orientation: float = 0.,
                 response: float = 0., scale_offset: float = 0., size: float = 0.) -> None:
        self.x: float = x
        self.y: float = y
        self.octave: int = octave
        self.interval: int = interval
        self.orientation: float = orientation
        self.response: float = response
        self.scale_offset: float = scale_offset
        self.size: float = size
        self.descriptor: Optional[np.ndarray] = None

    @property
    def pt(self) -> Tuple[float, float]:
        return self.x, self.y

    def imagePoint(self) -> Tuple[float, float]:
        """Location rescaled to original-image pixel coordinates."""
        factor = 2 ** self.octave
        return self.x * factor, self.y * factor

    def clone(self, orientation: float) -> 'SIFTKeyPoint':
        new_keypoint = deepcopy(self)
        new_keypoint.orientation = orientation
        new_keypoint.descriptor = None
        return new_keypoint

    def to_cv2(self):
        from cv2 import KeyPoint
        x, y = self.imagePoint()
        return KeyPoint(
            float(x),
            float(y),
            float(self.size),
            float(np.rad2deg(self.orientation)),
            float(self.response),
            int(self.octave)
        )

    def __repr__(self) -> str:
        return (f'SIFTKeyPoint(x={self.x:.3f}, y={self.y:.3f}, octave={self.octave}, '
                f'interval={self.interval}, orientation={self.orientation:.4f})')
