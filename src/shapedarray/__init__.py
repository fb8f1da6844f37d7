from shapedarray._version import version as __version__
from shapedarray.abc.mapping import ElementGenerator, Scanner
from shapedarray.core.array import ShapedArray
from shapedarray.core.common import Order
from shapedarray.core.config import config
from shapedarray.core.dtype import (
    BaseKind,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    get_element_kind,
)
from shapedarray.core.shape import Shape
from shapedarray.creation import create, from_numpy, scalar, wrap
from shapedarray.errors import (
    IndexOutOfRangeError,
    InvalidShapeError,
    NonConformableShapeError,
    UnsupportedKindError,
    ViewOutOfBoundsError,
)
from shapedarray.ops import roll, zero_padding

__all__ = [
    "BaseKind",
    "ElementGenerator",
    "Float32",
    "Float64",
    "IndexOutOfRangeError",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "InvalidShapeError",
    "NonConformableShapeError",
    "Order",
    "Scanner",
    "Shape",
    "ShapedArray",
    "UnsupportedKindError",
    "ViewOutOfBoundsError",
    "__version__",
    "config",
    "create",
    "from_numpy",
    "get_element_kind",
    "roll",
    "scalar",
    "wrap",
    "zero_padding",
]
