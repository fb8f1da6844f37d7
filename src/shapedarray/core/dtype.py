"""
The six element kinds and the conversions between them.

Every kind wraps a numpy scalar type. Conversions follow the native cast rules of
fixed width machine numbers: integers wrap around when narrowed, floating point values
are truncated toward zero and saturated when converted to integers, and ``NaN`` becomes
zero.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Self

import numpy as np

from shapedarray.core.config import config
from shapedarray.errors import UnsupportedKindError

if TYPE_CHECKING:
    import numpy.typing as npt

KindLike = Any


@dataclass(frozen=True)
class BaseKind(ABC):
    """
    Abstract base class for the numeric element kinds.

    Attributes
    ----------
    name : ClassVar[str]
        The canonical name of the kind, e.g. ``"int8"``.
    aliases : ClassVar[tuple[str, ...]]
        Other names the kind is known by.
    scalar_type : ClassVar[type[np.generic]]
        The numpy scalar type of the elements.
    accumulator : ClassVar[type[np.generic]]
        The numpy scalar type ``sum`` accumulates in.
    """

    name: ClassVar[str]
    aliases: ClassVar[tuple[str, ...]] = ()
    scalar_type: ClassVar[type[np.generic]]
    accumulator: ClassVar[type[np.generic]]
    is_integer: ClassVar[bool]

    def to_dtype(self) -> np.dtype[Any]:
        return np.dtype(self.scalar_type)

    @property
    def itemsize(self) -> int:
        return self.to_dtype().itemsize

    @classmethod
    def matches_dtype(cls, dtype: np.dtype[Any]) -> bool:
        """True if ``dtype`` holds this kind, in either byte order."""
        reference = np.dtype(cls.scalar_type)
        return dtype.kind == reference.kind and dtype.itemsize == reference.itemsize

    def default_value(self) -> np.generic:
        return self.scalar_type(0)

    @abstractmethod
    def cast_array(self, data: npt.ArrayLike) -> npt.NDArray[Any]:
        """
        Convert ``data`` to a new array of this kind with the native cast rules.

        Parameters
        ----------
        data : ArrayLike
            Numeric values of any of the supported kinds.

        Returns
        -------
        NDArray
            A new array of this kind and of the same shape as ``data``.
        """
        ...

    def cast_value(self, value: object) -> np.generic:
        """
        Convert a single number to a scalar of this kind.

        Raises
        ------
        TypeError
            If ``value`` is not a single number.
        """
        data = np.asarray(value)
        if data.ndim != 0 or data.dtype.kind not in "biuf":
            msg = (
                f"Cannot convert object {value!r} with type {type(value)} to a scalar compatible "
                f"with the element kind {self}."
            )
            raise TypeError(msg)
        return self.cast_array(data)[()]  # type: ignore[no-any-return]

    def reduction_array(self, data: npt.NDArray[Any]) -> npt.NDArray[Any]:
        """The values reductions operate on."""
        return data

    def __str__(self) -> str:
        return self.name


# float to integer conversions clamp to the range of these types first
_SATURATION_TYPES: dict[int, type[np.signedinteger[Any]]] = {
    1: np.int32,
    2: np.int32,
    4: np.int32,
    8: np.int64,
}


@dataclass(frozen=True)
class BaseInt(BaseKind):
    is_integer: ClassVar[bool] = True

    def cast_value(self, value: object) -> np.generic:
        # Python ints are unbounded, keep their low bits before numpy sees them
        if isinstance(value, int) and not isinstance(value, bool):
            half = 1 << (8 * self.itemsize - 1)
            return self.scalar_type((value + half) % (2 * half) - half)
        return super().cast_value(value)

    def cast_array(self, data: npt.ArrayLike) -> npt.NDArray[Any]:
        data = np.asarray(data)
        target = self.to_dtype()
        if data.dtype.kind != "f":
            return data.astype(target)

        intermediate = _SATURATION_TYPES[target.itemsize]
        info = np.iinfo(intermediate)
        values = data.astype(np.float64)
        nan = np.isnan(values)
        over = values >= info.max
        under = values <= info.min
        values = np.where(nan | over | under, 0.0, values)
        result = np.asarray(np.trunc(values)).astype(intermediate)
        result[over] = info.max
        result[under] = info.min
        return result.astype(target)


@dataclass(frozen=True)
class BaseFloat(BaseKind):
    is_integer: ClassVar[bool] = False

    def cast_value(self, value: object) -> np.generic:
        # Python ints are unbounded, round them before numpy sees them
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                value = float(value)
            except OverflowError:
                value = math.inf if value > 0 else -math.inf
        return super().cast_value(value)

    def cast_array(self, data: npt.ArrayLike) -> npt.NDArray[Any]:
        data = np.asarray(data)
        with np.errstate(over="ignore", invalid="ignore"):
            return data.astype(self.to_dtype())


@dataclass(frozen=True)
class Int8(BaseInt):
    """
    Signed 8-bit integers.

    Reductions read the elements as unsigned bytes, so an element holding ``-1``
    counts as ``255`` for ``min``, ``max``, ``sum`` and ``average``.
    """

    name: ClassVar[str] = "int8"
    aliases: ClassVar[tuple[str, ...]] = ("byte",)
    scalar_type: ClassVar[type[np.generic]] = np.int8
    accumulator: ClassVar[type[np.generic]] = np.int32

    def reduction_array(self, data: npt.NDArray[Any]) -> npt.NDArray[Any]:
        return data.astype(np.uint8)


@dataclass(frozen=True)
class Int16(BaseInt):
    name: ClassVar[str] = "int16"
    aliases: ClassVar[tuple[str, ...]] = ("short",)
    scalar_type: ClassVar[type[np.generic]] = np.int16
    accumulator: ClassVar[type[np.generic]] = np.int32


@dataclass(frozen=True)
class Int32(BaseInt):
    name: ClassVar[str] = "int32"
    aliases: ClassVar[tuple[str, ...]] = ("int",)
    scalar_type: ClassVar[type[np.generic]] = np.int32
    accumulator: ClassVar[type[np.generic]] = np.int32


@dataclass(frozen=True)
class Int64(BaseInt):
    name: ClassVar[str] = "int64"
    aliases: ClassVar[tuple[str, ...]] = ("long",)
    scalar_type: ClassVar[type[np.generic]] = np.int64
    accumulator: ClassVar[type[np.generic]] = np.int64


@dataclass(frozen=True)
class Float32(BaseFloat):
    name: ClassVar[str] = "float32"
    aliases: ClassVar[tuple[str, ...]] = ("float",)
    scalar_type: ClassVar[type[np.generic]] = np.float32
    accumulator: ClassVar[type[np.generic]] = np.float32


@dataclass(frozen=True)
class Float64(BaseFloat):
    name: ClassVar[str] = "float64"
    aliases: ClassVar[tuple[str, ...]] = ("double",)
    scalar_type: ClassVar[type[np.generic]] = np.float64
    accumulator: ClassVar[type[np.generic]] = np.float64


ELEMENT_KINDS: tuple[type[BaseKind], ...] = (Int8, Int16, Int32, Int64, Float32, Float64)


@dataclass(frozen=True, kw_only=True)
class ElementKindRegistry:
    """
    A registry mapping names to element kind classes.

    Attributes
    ----------
    contents : dict[str, type[BaseKind]]
        Canonical names and aliases, each mapped to its kind class.
    """

    contents: dict[str, type[BaseKind]] = field(default_factory=dict, init=False)

    def register(self: Self, key: str, cls: type[BaseKind]) -> None:
        if key not in self.contents or self.contents[key] != cls:
            self.contents[key] = cls

    def unregister(self, key: str) -> None:
        if key in self.contents:
            del self.contents[key]
        else:
            raise KeyError(f"Element kind '{key}' not found in registry.")

    def get(self, key: str) -> type[BaseKind]:
        return self.contents[key]

    def match_dtype(self, dtype: np.dtype[Any]) -> BaseKind:
        """
        Find the kind holding ``dtype``.

        Raises
        ------
        UnsupportedKindError
            If no registered kind matches.
        """
        for cls in dict.fromkeys(self.contents.values()):
            if cls.matches_dtype(dtype):
                return cls()
        raise UnsupportedKindError(dtype, ", ".join(k.name for k in ELEMENT_KINDS))


element_kind_registry = ElementKindRegistry()
for _cls in ELEMENT_KINDS:
    element_kind_registry.register(_cls.name, _cls)
    for _alias in _cls.aliases:
        element_kind_registry.register(_alias, _cls)


def get_element_kind(data: KindLike = None) -> BaseKind:
    """
    Resolve an element kind.

    Parameters
    ----------
    data : KindLike
        A kind instance or class, a registered name such as ``"int8"`` or ``"double"``,
        anything ``numpy.dtype`` accepts, or the Python types ``int`` and ``float``.
        ``None`` stands for the ``array.kind`` configuration value.

    Returns
    -------
    BaseKind

    Raises
    ------
    UnsupportedKindError
        If ``data`` does not name one of the six element kinds.
    """
    if data is None:
        data = config.get("array.kind")
    if isinstance(data, BaseKind):
        return data
    if isinstance(data, type) and issubclass(data, BaseKind):
        return data()
    if data is int:
        return Int64()
    if data is float:
        return Float64()
    if isinstance(data, str) and data in element_kind_registry.contents:
        return element_kind_registry.get(data)()
    try:
        dtype = np.dtype(data)
    except (TypeError, ValueError) as e:
        raise UnsupportedKindError(data, ", ".join(k.name for k in ELEMENT_KINDS)) from e
    return element_kind_registry.match_dtype(dtype)
