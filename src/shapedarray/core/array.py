from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, TypeVar

import numpy as np
import numpy.typing as npt

from shapedarray.abc.mapping import ElementGenerator, Scanner
from shapedarray.core.addressing import iter_indices
from shapedarray.core.buffer import ContiguousStorage, Storage, as_buffer
from shapedarray.core.common import Order, normalize_axis_index
from shapedarray.core.config import config, parse_force_copy
from shapedarray.core.dtype import (
    BaseKind,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    KindLike,
    get_element_kind,
)
from shapedarray.core.indexing import (
    GatherIndexer,
    RangeIndexer,
    ensure_tuple,
    normalize_integer_selection,
)
from shapedarray.core.shape import Shape
from shapedarray.errors import IndexOutOfRangeError, NonConformableShapeError

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)

TScanner = TypeVar("TScanner", bound=Scanner)


def _use_vectorized_traversal() -> bool:
    return bool(config.get("traversal.vectorize"))


class ShapedArray:
    """
    A dense array of rank 0 to 9 holding numbers of one element kind.

    Arrays are made with ``shapedarray.create``, ``shapedarray.wrap`` and friends, or derived
    from other arrays with ``slice``, ``view``, ``select`` and ``to_kind``. Views share the
    buffer of the array they come from: writing to a view writes to that array.

    Parameters
    ----------
    storage : Storage
        The buffer and the addressing descriptor of the elements.

    Attributes
    ----------
    shape : Shape
        The dimensions of the array.
    kind : BaseKind
        The element kind.
    order : Order
        The storage order, which decides the order in which bulk operations visit the
        elements.
    """

    def __init__(self, storage: Storage) -> None:
        self._storage = storage
        self._shape = Shape(storage.shape)

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def rank(self) -> int:
        return self._shape.rank

    @property
    def number(self) -> int:
        """The number of elements."""
        return self._shape.number

    @property
    def order(self) -> Order:
        return self._storage.order

    @property
    def kind(self) -> BaseKind:
        return self._storage.kind

    @property
    def dtype(self) -> np.dtype[Any]:
        return self._storage.data.dtype

    @property
    def is_view(self) -> bool:
        """True if the array does not own its buffer."""
        return not self._storage.owns_data

    def dimension(self, k: int) -> int:
        """Length of axis ``k``; axes beyond the rank have length 1."""
        return self._shape.dimension(k)

    # element access

    def _check_index(self, index: tuple[Any, ...]) -> None:
        if len(index) != self.rank:
            raise IndexError(f"expected {self.rank} indices, got {len(index)}")

    def get(self, *index: int) -> np.generic:
        """The element at ``index``, one integer per axis."""
        self._check_index(index)
        return self._storage.as_ndarray()[index]  # type: ignore[no-any-return]

    def set(self, *args: Any) -> None:
        """
        ``set(i_1, ..., i_r, value)`` stores ``value``, cast to the element kind, at the
        given index.
        """
        if not args:
            raise TypeError("set() requires an index and a value")
        *index, value = args
        self._check_index(tuple(index))
        self._storage.as_ndarray()[tuple(index)] = self.kind.cast_value(value)

    def __getitem__(self, key: Any) -> np.generic:
        return self.get(*ensure_tuple(key))

    def __setitem__(self, key: Any, value: Any) -> None:
        self.set(*ensure_tuple(key), value)

    # traversal

    def _traversal_view(self) -> npt.NDArray[Any]:
        """The elements as a numpy view whose C order is the traversal order."""
        view = self._storage.as_ndarray()
        if self.order is Order.ROW_MAJOR:
            return view
        return view.transpose()

    def _indices(self) -> Iterator[tuple[int, ...]]:
        return iter_indices(self._shape.dims, self.order)

    def _update(self, func: Callable[[Any], Any]) -> None:
        logger.debug("element loop over %d elements of a %s array", self.number, self.order)
        view = self._storage.as_ndarray()
        cast = self.kind.cast_value
        for index in self._indices():
            view[index] = cast(func(view[index]))

    def _write_in_traversal_order(self, values: list[Any]) -> None:
        cast = self.kind.cast_value
        data = np.array([cast(v) for v in values], dtype=self.kind.to_dtype())
        if _use_vectorized_traversal():
            tview = self._traversal_view()
            tview[...] = data.reshape(tview.shape)
        else:
            view = self._storage.as_ndarray()
            for index, value in zip(self._indices(), data, strict=True):
                view[index] = value

    def _fill_from(self, source: ElementGenerator | Iterator[Any]) -> None:
        produce = source.next if isinstance(source, ElementGenerator) else source.__next__
        values = []
        for _ in range(self.number):
            try:
                values.append(produce())
            except StopIteration:
                raise ValueError(
                    f"source exhausted after {len(values)} of {self.number} elements"
                ) from None
        self._write_in_traversal_order(values)

    def fill(self, value: Any) -> None:
        """
        Set every element.

        Parameters
        ----------
        value : Any
            A number, an ``ElementGenerator`` or an iterator. Generators and iterators
            are consumed once per element, in traversal order.
        """
        if isinstance(value, ElementGenerator | Iterator):
            self._fill_from(value)
            return
        scalar = self.kind.cast_value(value)
        if _use_vectorized_traversal():
            self._storage.as_ndarray()[...] = scalar
        else:
            self._update(lambda _: scalar)

    def _combine(self, ufunc: np.ufunc, reference: Callable[[Any, Any], Any], value: Any) -> None:
        operand = self.kind.cast_value(value)
        if _use_vectorized_traversal():
            view = self._storage.as_ndarray()
            with np.errstate(over="ignore", invalid="ignore"):
                ufunc(view, operand, out=view, casting="unsafe")
        else:
            python_operand = operand.item()
            self._update(lambda v: reference(v.item(), python_operand))

    def increment(self, value: Any) -> None:
        """Add ``value``, cast to the element kind, to every element."""
        self._combine(np.add, operator.add, value)

    def decrement(self, value: Any) -> None:
        """Subtract ``value``, cast to the element kind, from every element."""
        self._combine(np.subtract, operator.sub, value)

    def scale(self, value: Any) -> None:
        """Multiply every element by ``value``, cast to the element kind."""
        self._combine(np.multiply, operator.mul, value)

    def map(self, func: Callable[[Any], Any]) -> None:
        """
        Replace every element ``e`` by ``func(e)`` cast to the element kind.

        A numpy ufunc is applied to the whole array at once, any other callable once per
        element in traversal order.
        """
        if isinstance(func, np.ufunc) and _use_vectorized_traversal():
            view = self._storage.as_ndarray()
            with np.errstate(all="ignore"):
                view[...] = self.kind.cast_array(func(view))
        elif _use_vectorized_traversal():
            self._write_in_traversal_order([func(v) for v in self._traversal_view().flat])
        else:
            self._update(func)

    def scan(self, scanner: TScanner) -> TScanner:
        """
        Fold the elements into ``scanner``.

        ``scanner.initialize`` receives the first element in traversal order and
        ``scanner.update`` each of the others.

        Returns
        -------
        Scanner
            ``scanner`` itself.
        """
        elements: Iterator[Any]
        if _use_vectorized_traversal():
            elements = iter(self._traversal_view().flat)
        else:
            view = self._storage.as_ndarray()
            elements = (view[index] for index in self._indices())
        scanner.initialize(next(elements))
        for value in elements:
            scanner.update(value)
        return scanner

    def assign(self, source: ShapedArray | npt.ArrayLike) -> Self:
        """
        Copy the elements of ``source``, converting them to the element kind.

        Parameters
        ----------
        source : ShapedArray or ArrayLike
            An array of the same shape, of any kind, or a flat buffer holding exactly
            ``number`` elements in column-major order.

        Returns
        -------
        ShapedArray
            The array itself.

        Raises
        ------
        NonConformableShapeError
            If ``source`` does not hold as many elements in the same shape. Nothing is
            written in that case.
        UnsupportedKindError
            If the elements of a flat buffer are of an unsupported kind.
        """
        if isinstance(source, ShapedArray):
            if source.shape != self._shape:
                raise NonConformableShapeError(self._shape.dims, source.shape.dims)
            values = source.storage.as_ndarray()
        else:
            data, _ = as_buffer(source)
            if len(data) != self.number:
                raise NonConformableShapeError(
                    f"Expected a buffer of {self.number} elements, got {len(data)}."
                )
            values = data.reshape(self._shape.dims, order="F")
        values = self.kind.cast_array(values)
        view = self._storage.as_ndarray()
        if _use_vectorized_traversal():
            view[...] = values
        else:
            for index in self._indices():
                view[index] = values[index]
        return self

    # reductions

    def _reduction_data(self) -> npt.NDArray[Any]:
        return self.kind.reduction_array(self._storage.as_ndarray())

    def _fold(self, data: npt.NDArray[Any], ufunc: np.ufunc) -> int | float:
        # seeded with the first element: a NaN seed never compares, later NaNs are skipped
        seed = data[(0,) * self.rank]
        if not self.kind.is_integer and np.isnan(seed):
            return seed.item()  # type: ignore[no-any-return]
        return ufunc.reduce(data, axis=None).item()  # type: ignore[no-any-return]

    def min(self) -> int | float:
        """
        The smallest element. 8-bit elements are compared as unsigned bytes.

        Only a ``NaN`` at index ``(0, ..., 0)`` makes the result ``NaN``, other ``NaN``
        elements are ignored.
        """
        return self._fold(self._reduction_data(), np.fmin)

    def max(self) -> int | float:
        """The largest element, with the same rules as ``min``."""
        return self._fold(self._reduction_data(), np.fmax)

    def get_min_and_max(self) -> tuple[int | float, int | float]:
        data = self._reduction_data()
        return self._fold(data, np.fmin), self._fold(data, np.fmax)

    def sum(self) -> int | float:
        """
        The sum of the elements, accumulated in the accumulator type of the element kind.

        Integer sums wrap around silently. 8-bit elements are added as unsigned bytes.
        """
        return self._reduction_data().sum(dtype=self.kind.accumulator).item()  # type: ignore[no-any-return]

    def average(self) -> float:
        return float(self.sum()) / self.number

    # materialization

    def flatten(self, force_copy: bool | None = None) -> npt.NDArray[Any]:
        """
        The elements in a contiguous, column-major buffer.

        Parameters
        ----------
        force_copy : bool, optional
            Always return a new buffer. Otherwise the buffer of the array is returned
            as is when it already holds exactly the elements in column-major order, so
            writing to the result writes to the array. Defaults to the
            ``flatten.force_copy`` configuration value.
        """
        return self._storage.flatten(parse_force_copy(force_copy))

    def copy(self) -> ShapedArray:
        """A new array owning a copy of the elements."""
        return ShapedArray(ContiguousStorage(self._storage.flatten(True), self._shape.dims))

    def as_1d(self) -> ShapedArray:
        """
        The elements as a rank 1 array in column-major order, sharing the buffer
        when the elements are packed at its start.
        """
        if self.rank == 1:
            return self
        if self._storage.is_flat:
            return ShapedArray(ContiguousStorage(self._storage.data, (self.number,)))
        return ShapedArray(ContiguousStorage(self._storage.flatten(True), (self.number,)))

    # views

    def slice(self, index: int, axis: int = -1) -> ShapedArray:
        """
        A view of rank ``rank - 1`` at ``index`` along ``axis``.

        Negative values of ``index`` and ``axis`` count from the end, ``axis`` defaults to
        the last axis.

        Raises
        ------
        IndexOutOfRangeError
            If the array is a scalar, or ``axis`` or ``index`` is out of range.
        """
        if self.rank == 0:
            raise IndexOutOfRangeError("cannot slice an array of rank 0")
        axis = normalize_axis_index(axis, self.rank)
        dims = self._shape.dims
        strides = self._storage.strides
        index = normalize_integer_selection(index, dims[axis])
        return ShapedArray(
            self._storage.view(
                self._storage.offset + index * strides[axis],
                dims[:axis] + dims[axis + 1 :],
                strides[:axis] + strides[axis + 1 :],
            )
        )

    def view(self, *ranges: Any) -> ShapedArray:
        """
        A view of the same rank restricted to a range along each axis.

        Parameters
        ----------
        *ranges
            One entry per axis: ``None`` for every index, a ``slice``, a ``range`` or a
            ``(start, stop[, step])`` tuple. Missing trailing entries select every index.

        Returns
        -------
        ShapedArray
            The array itself when every axis is selected in full.
        """
        indexer = RangeIndexer(ranges, self._shape.dims)
        if indexer.is_complete:
            return self
        offset, strides = indexer.project(self._storage.offset, self._storage.strides)
        return ShapedArray(self._storage.view(offset, indexer.shape, strides))

    def select(self, *indices: Any) -> ShapedArray:
        """
        A new array gathering a list of indices along each axis.

        Parameters
        ----------
        *indices
            One entry per axis: ``None`` for every index, or a non-empty sequence of
            integers which may be negative and repeated.
        """
        indexer = GatherIndexer(indices, self._shape.dims)
        values = np.asarray(self._storage.as_ndarray()[indexer.ix_()])
        logger.debug("gathered %d elements into shape %s", values.size, indexer.shape)
        return ShapedArray(ContiguousStorage(values.ravel(order="F"), indexer.shape))

    # conversion

    def to_kind(self, kind: KindLike) -> ShapedArray:
        """
        The elements converted to ``kind``.

        The array itself is returned when it already holds elements of that kind,
        otherwise a new column-major array.
        """
        target = get_element_kind(kind)
        if target == self.kind:
            return self
        logger.debug("converting %d elements from %s to %s", self.number, self.kind, target)
        data = target.cast_array(self._storage.flatten(False))
        return ShapedArray(ContiguousStorage(data, self._shape.dims))

    def to_int8(self) -> ShapedArray:
        return self.to_kind(Int8())

    def to_int16(self) -> ShapedArray:
        return self.to_kind(Int16())

    def to_int32(self) -> ShapedArray:
        return self.to_kind(Int32())

    def to_int64(self) -> ShapedArray:
        return self.to_kind(Int64())

    def to_float32(self) -> ShapedArray:
        return self.to_kind(Float32())

    def to_float64(self) -> ShapedArray:
        return self.to_kind(Float64())

    # comparison and interop

    def all_equal(self, other: object) -> bool:
        """True if ``other`` is an array of the same kind and shape holding equal values."""
        if not isinstance(other, ShapedArray):
            return False
        return (
            self.kind == other.kind
            and self._shape == other.shape
            and np.array_equal(
                self._storage.as_ndarray(),
                other.storage.as_ndarray(),
                equal_nan=not self.kind.is_integer,
            )
        )

    def __array__(self, dtype: npt.DTypeLike | None = None, copy: bool | None = None) -> npt.NDArray[Any]:
        if copy is False:
            raise ValueError("converting a ShapedArray to a numpy array always copies")
        return np.array(self._storage.as_ndarray(), dtype=dtype, copy=True)

    def __repr__(self) -> str:
        return (
            f"<ShapedArray shape={self._shape} kind={self.kind} order={self.order.name}"
            f"{' view' if self.is_view else ''}>"
        )
