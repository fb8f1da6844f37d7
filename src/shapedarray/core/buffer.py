from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import numpy as np
import numpy.typing as npt

from shapedarray.core.addressing import (
    canonical_strides,
    check_view_strides,
    is_canonical,
    linear_index,
)
from shapedarray.core.common import (
    Order,
    ShapeLike,
    ShapeTuple,
    StridesLike,
    is_integer,
    parse_shapelike,
    parse_strides,
    product,
)
from shapedarray.core.dtype import BaseKind, get_element_kind

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)


def as_buffer(data: npt.ArrayLike) -> tuple[npt.NDArray[Any], BaseKind]:
    """
    Check that ``data`` can back an array and find its element kind.

    ``numpy.ndarray`` instances and objects exposing the buffer protocol are used
    in place, anything else is copied into a new numpy array.

    Raises
    ------
    ValueError
        If ``data`` is not one dimensional.
    UnsupportedKindError
        If the elements of ``data`` are not of one of the six kinds.
    """
    data = np.asarray(data)
    if data.ndim != 1:
        raise ValueError(f"Expected a 1-dimensional buffer, got {data.ndim} dimensions instead.")
    return data, get_element_kind(data.dtype)


class Storage(ABC):
    """The memory behind an array: a flat buffer and an addressing descriptor.

    The element at index ``(i_1, ..., i_r)`` lives at position
    ``offset + sum(strides[k] * i_k)`` of the buffer. The descriptor is checked against
    the length of the buffer once, when the storage is built.

    Parameters
    ----------
    data : ndarray
        One dimensional buffer.
    kind : BaseKind
        Element kind of ``data``.
    shape : tuple[int, ...]
        Dimensions.
    offset : int
        Position of the first element.
    strides : tuple[int, ...]
        Steps between consecutive elements along each axis, in elements.
    order : Order
        Storage order inferred from ``strides``.
    """

    def __init__(
        self,
        data: npt.NDArray[Any],
        kind: BaseKind,
        shape: ShapeTuple,
        offset: int,
        strides: tuple[int, ...],
        order: Order,
    ) -> None:
        self._data = data
        self._kind = kind
        self._shape = shape
        self._offset = offset
        self._strides = strides
        self._order = order
        self._ndarray: npt.NDArray[Any] | None = None

    @property
    def data(self) -> npt.NDArray[Any]:
        return self._data

    @property
    def kind(self) -> BaseKind:
        return self._kind

    @property
    def shape(self) -> ShapeTuple:
        return self._shape

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def strides(self) -> tuple[int, ...]:
        return self._strides

    @property
    def order(self) -> Order:
        return self._order

    @property
    def number(self) -> int:
        return product(self._shape)

    @property
    @abstractmethod
    def owns_data(self) -> bool: ...

    @property
    def is_flat(self) -> bool:
        """True if the elements are packed in column-major order from the start of the buffer."""
        return is_canonical(self._offset, self._shape, self._strides)

    def as_ndarray(self) -> npt.NDArray[Any]:
        """
        A numpy view of the elements, indexed like the array.

        The view shares memory with the buffer, writing to it writes to the buffer.
        """
        if self._ndarray is None:
            data = self._data
            unit = data.strides[0] if len(data) > 1 else data.itemsize
            self._ndarray = np.lib.stride_tricks.as_strided(
                data[self._offset :],
                shape=self._shape,
                strides=tuple(s * unit for s in self._strides),
                writeable=bool(data.flags.writeable),
            )
        return self._ndarray

    def linear_index(self, index: tuple[int, ...]) -> int:
        return linear_index(self._offset, self._strides, index)

    def flatten(self, force_copy: bool = False) -> npt.NDArray[Any]:
        """
        The elements in a contiguous buffer, in column-major order.

        Unless ``force_copy`` is set, the buffer itself is returned when it already
        holds exactly the elements in that order.
        """
        if (
            not force_copy
            and self.is_flat
            and len(self._data) == self.number
            and self._data.flags.c_contiguous
        ):
            return self._data
        logger.debug("copying %d elements of a %s view to flatten it", self.number, self._order)
        return self.as_ndarray().flatten(order="F")

    def view(self, offset: int, shape: ShapeTuple, strides: tuple[int, ...]) -> StridedStorage:
        """Another descriptor over the same buffer."""
        return StridedStorage(self._data, shape, offset=offset, strides=strides)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self._kind}, shape={self._shape}, "
            f"offset={self._offset}, strides={self._strides}, order={self._order.name})"
        )


class ContiguousStorage(Storage):
    """Elements packed in column-major order at the start of the buffer.

    Parameters
    ----------
    data : ArrayLike
        One dimensional buffer with at least as many elements as ``shape`` holds.
    shape : ShapeLike
        Dimensions.
    """

    def __init__(self, data: npt.ArrayLike, shape: ShapeLike) -> None:
        data, kind = as_buffer(data)
        shape = parse_shapelike(shape)
        strides = canonical_strides(shape)
        order = check_view_strides(len(data), 0, shape, strides)
        super().__init__(data, kind, shape, 0, strides, order)

    @classmethod
    def create(cls, shape: ShapeLike, kind: BaseKind) -> Self:
        """Allocate a zero filled buffer of exactly the number of elements of ``shape``."""
        shape = parse_shapelike(shape)
        logger.debug("allocating %d elements of kind %s", product(shape), kind)
        return cls(np.zeros(product(shape), dtype=kind.to_dtype()), shape)

    @property
    def owns_data(self) -> bool:
        return True


class StridedStorage(Storage):
    """An arbitrary descriptor over a buffer owned by someone else.

    Parameters
    ----------
    data : ArrayLike
        One dimensional buffer.
    shape : ShapeLike
        Dimensions.
    offset : int
        Position of the element at index ``(0, ..., 0)``.
    strides : StridesLike, optional
        One stride per dimension, defaults to column-major strides.
    """

    def __init__(
        self,
        data: npt.ArrayLike,
        shape: ShapeLike,
        *,
        offset: int = 0,
        strides: StridesLike | None = None,
    ) -> None:
        data, kind = as_buffer(data)
        shape = parse_shapelike(shape)
        if not is_integer(offset):
            raise TypeError(f"Expected an integer offset, got {offset!r} instead.")
        offset = int(offset)
        strides = canonical_strides(shape) if strides is None else parse_strides(strides, len(shape))
        order = check_view_strides(len(data), offset, shape, strides)
        logger.debug(
            "strided view with offset %d, shape %s and strides %s is %s",
            offset,
            shape,
            strides,
            order,
        )
        super().__init__(data, kind, shape, offset, strides, order)

    @property
    def owns_data(self) -> bool:
        return False
