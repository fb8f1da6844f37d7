from __future__ import annotations

import functools
import numbers
import operator
from collections.abc import Iterable
from enum import Enum
from typing import Any, Final, TypeVar

from shapedarray.errors import IndexOutOfRangeError, InvalidShapeError

ShapeLike = Iterable[int] | int
StridesLike = Iterable[int] | int
ShapeTuple = tuple[int, ...]

MAX_RANK: Final = 9


class Order(Enum):
    """
    Storage order of an addressing descriptor, inferred from its strides.
    """

    COLUMN_MAJOR = "column-major"
    ROW_MAJOR = "row-major"
    NONSPECIFIC = "nonspecific"


E = TypeVar("E", bound=Enum)


def product(tup: tuple[int, ...]) -> int:
    return functools.reduce(operator.mul, tup, 1)


def is_integer(x: Any) -> bool:
    return isinstance(x, numbers.Integral) and not isinstance(x, bool)


def parse_enum(data: object, cls: type[E]) -> E:
    if isinstance(data, cls):
        return data
    if not isinstance(data, str):
        raise TypeError(f"Expected str, got {type(data)}")
    for item in cls:
        if data in (item.name, item.value):
            return item
    raise ValueError(f"Value must be one of {[item.name for item in cls]!r}. Got {data} instead.")


def _parse_integers(data: Iterable[int] | int, what: str) -> tuple[int, ...]:
    if is_integer(data):
        return (int(data),)  # type: ignore[arg-type]
    try:
        data_tuple = tuple(data)  # type: ignore[arg-type]
    except TypeError as e:
        msg = f"Expected an integer or an iterable of integers for the {what}. Got {data} instead."
        raise TypeError(msg) from e
    if not all(is_integer(v) for v in data_tuple):
        msg = f"Expected an iterable of integers for the {what}. Got {data} instead."
        raise TypeError(msg)
    return tuple(int(v) for v in data_tuple)


def parse_shapelike(data: ShapeLike) -> ShapeTuple:
    """
    Normalize a shape to a tuple of ints.

    An int is a rank 1 shape and an empty iterable is the shape of a scalar. Every
    dimension must be at least 1 and there may be at most ``MAX_RANK`` of them.
    """
    data_tuple = _parse_integers(data, "shape")
    if len(data_tuple) > MAX_RANK:
        raise InvalidShapeError(data_tuple, f"rank {len(data_tuple)} exceeds {MAX_RANK}")
    if not all(v >= 1 for v in data_tuple):
        raise InvalidShapeError(data_tuple, "all dimensions must be at least 1")
    return data_tuple


def parse_strides(data: StridesLike, rank: int) -> tuple[int, ...]:
    data_tuple = _parse_integers(data, "strides")
    if len(data_tuple) != rank:
        raise InvalidShapeError(
            data_tuple, f"expected {rank} strides, one per dimension, got {len(data_tuple)}"
        )
    return data_tuple


def parse_order(data: Any) -> Order:
    return parse_enum(data, Order)


def parse_bool(data: Any) -> bool:
    if isinstance(data, bool):
        return data
    raise ValueError(f"Expected bool, got {data} instead.")


def normalize_axis_index(axis: int, rank: int) -> int:
    """
    Resolve a possibly negative axis against ``rank``. ``-1`` is the last axis.
    """
    if not is_integer(axis):
        raise TypeError(f"Expected an integer axis, got {axis!r} instead.")
    resolved = int(axis)
    if resolved < 0:
        resolved += rank
    if resolved < 0 or resolved >= rank:
        raise IndexOutOfRangeError(f"axis {axis} is out of range for an array of rank {rank}")
    return resolved
