class SIFTError(Exception):
    """Base class for errors raised by the feature extraction pipeline."""


class InputShapeError(SIFTError, ValueError):
    """An image has the wrong dimensionality, channel count or bit depth for a stage."""


class DimensionMismatchError(SIFTError, ValueError):
    """Two operands that must share dimensions do not."""
