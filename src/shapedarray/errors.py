__all__ = [
    "BaseShapedArrayError",
    "IndexOutOfRangeError",
    "InvalidShapeError",
    "NonConformableShapeError",
    "UnsupportedKindError",
    "ViewOutOfBoundsError",
]


class BaseShapedArrayError(ValueError):
    """
    Base error which all shapedarray value errors are sub-classed from.
    """

    _msg: str = "{}"

    def __init__(self, *args: object) -> None:
        """
        If a single argument is passed, treat it as a pre-formatted message.

        If multiple arguments are passed, they are used as arguments for a template string class
        variable.
        """
        if len(args) == 1:
            super().__init__(args[0])
        else:
            super().__init__(self._msg.format(*args))


class InvalidShapeError(BaseShapedArrayError):
    """
    Raised when a shape has a non-positive dimension, too many dimensions, or when
    an addressing descriptor does not have one stride per dimension.
    """

    _msg = "Invalid shape {!r}: {}"


class NonConformableShapeError(BaseShapedArrayError):
    """Raised when two operands of an element-wise operation do not have the same shape."""

    _msg = "Expected shape {!r}, got {!r}."


class UnsupportedKindError(BaseShapedArrayError, TypeError):
    """Raised when an element type is not one of the supported numeric kinds."""

    _msg = "Unsupported element kind {!r}. Expected one of {}."


class ViewOutOfBoundsError(IndexError):
    """Raised when an addressing descriptor reaches outside of its backing buffer."""


class IndexOutOfRangeError(IndexError):
    """Raised when an index, a range or an axis falls outside of a dimension."""
