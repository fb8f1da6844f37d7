from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, TypeGuard, cast

import numpy as np
import numpy.typing as npt

from shapedarray.core.common import ShapeTuple, is_integer
from shapedarray.errors import IndexOutOfRangeError


RangeSelector = slice | range | tuple[int | None, ...] | None
GatherSelector = slice | int | range | Sequence[int] | npt.NDArray[np.integer[Any]] | None
SelectionNormalized = tuple[Any, ...]


def err_too_many_indices(selection: Any, shape: ShapeTuple) -> None:
    raise IndexError(f"too many indices for array; expected {len(shape)}, got {len(selection)}")


def is_integer_array(x: Any, ndim: int | None = None) -> TypeGuard[npt.NDArray[np.intp]]:
    t = not np.isscalar(x) and hasattr(x, "shape") and hasattr(x, "dtype") and x.dtype.kind in "ui"
    if ndim is not None:
        t = t and hasattr(x, "shape") and len(x.shape) == ndim
    return t


def normalize_integer_selection(dim_sel: int, dim_len: int) -> int:
    if not is_integer(dim_sel):
        raise TypeError(f"Expected an integer index, got {dim_sel!r} instead.")

    # normalize type to int
    dim_sel = int(dim_sel)

    # handle wraparound
    if dim_sel < 0:
        dim_sel = dim_len + dim_sel

    # handle out of bounds
    if dim_sel >= dim_len or dim_sel < 0:
        raise IndexOutOfRangeError(f"index out of bounds for dimension with length {dim_len}")

    return dim_sel


def ensure_tuple(v: Any) -> SelectionNormalized:
    if not isinstance(v, tuple):
        v = (v,)
    return cast(SelectionNormalized, v)


def replace_ellipsis(selection: Any, shape: ShapeTuple) -> SelectionNormalized:
    """Expand an ``Ellipsis`` and pad ``selection`` with ``None`` up to the rank of ``shape``."""
    selection = ensure_tuple(selection)

    # count number of ellipsis present
    n_ellipsis = sum(1 for i in selection if i is Ellipsis)

    if n_ellipsis > 1:
        # more than 1 is an error
        raise IndexError("an index can only have a single ellipsis ('...')")

    elif n_ellipsis == 1:
        # locate the ellipsis, count how many items to left and right
        n_items_l = next(i for i, s in enumerate(selection) if s is Ellipsis)
        n_items_r = len(selection) - (n_items_l + 1)
        n_items = len(selection) - 1

        if n_items >= len(shape):
            # ellipsis does nothing, just remove it
            selection = tuple(i for i in selection if i is not Ellipsis)

        else:
            # replace ellipsis with as many Nones as are needed for number of dims
            new_item = selection[:n_items_l] + ((None,) * (len(shape) - n_items))
            if n_items_r:
                new_item += selection[-n_items_r:]
            selection = new_item

    # fill out selection if not completely specified
    if len(selection) < len(shape):
        selection += (None,) * (len(shape) - len(selection))

    if len(selection) > len(shape):
        err_too_many_indices(selection, shape)

    return selection


def _parse_bound(value: Any, dim_len: int, *, upper: bool) -> int | None:
    if value is None:
        return None
    if not is_integer(value):
        raise TypeError(f"Expected an integer range bound, got {value!r} instead.")
    bound = int(value)
    if bound < 0:
        bound += dim_len
    limit = dim_len if upper else dim_len - 1
    if bound < 0 or bound > limit:
        raise IndexOutOfRangeError(
            f"range bound {value} is out of bounds for dimension with length {dim_len}"
        )
    return bound


def _split_range(dim_sel: RangeSelector) -> tuple[Any, Any, Any]:
    if dim_sel is None:
        return None, None, None
    if isinstance(dim_sel, slice | range):
        return dim_sel.start, dim_sel.stop, dim_sel.step
    if isinstance(dim_sel, tuple) and len(dim_sel) in (2, 3):
        return dim_sel + (None,) * (3 - len(dim_sel))  # type: ignore[return-value]
    raise TypeError(
        f"Expected None, a slice, a range or a (start, stop[, step]) tuple, got {dim_sel!r} instead."
    )


@dataclass(frozen=True)
class RangeDimIndexer:
    """A regularly spaced range of indices along a single dimension.

    ``stop`` is exclusive and negative bounds count from the end, as for Python slices.
    Unlike slices, bounds are not clipped: a bound outside of the dimension, a zero step
    and an empty range are errors.
    """

    dim_len: int
    start: int
    step: int
    nitems: int

    def __init__(self, dim_sel: RangeSelector, dim_len: int) -> None:
        start_sel, stop_sel, step_sel = _split_range(dim_sel)
        if step_sel is None:
            step = 1
        elif is_integer(step_sel):
            step = int(step_sel)
        else:
            raise TypeError(f"Expected an integer range step, got {step_sel!r} instead.")
        if step == 0:
            raise IndexOutOfRangeError("range step cannot be zero")

        start = _parse_bound(start_sel, dim_len, upper=False)
        stop = _parse_bound(stop_sel, dim_len, upper=True)
        if step > 0:
            start = 0 if start is None else start
            stop = dim_len if stop is None else stop
        else:
            start = dim_len - 1 if start is None else start
            stop = -1 if stop is None else stop

        nitems = len(range(start, stop, step))
        if nitems == 0:
            raise IndexOutOfRangeError(
                f"empty range {dim_sel!r} for dimension with length {dim_len}"
            )

        object.__setattr__(self, "dim_len", dim_len)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "step", step)
        object.__setattr__(self, "nitems", nitems)

    @property
    def is_complete(self) -> bool:
        """True if the range is every index of the dimension in increasing order."""
        return self.start == 0 and self.nitems == self.dim_len and (
            self.step == 1 or self.dim_len == 1
        )

    def project(self, offset: int, stride: int) -> tuple[int, int]:
        """The offset and the stride of the range within a descriptor."""
        return offset + self.start * stride, stride * self.step


def wraparound_indices(x: npt.NDArray[Any], dim_len: int) -> None:
    loc_neg = x < 0
    if np.any(loc_neg):
        x[loc_neg] += dim_len


def boundscheck_indices(x: npt.NDArray[Any], dim_len: int) -> None:
    if np.any(x < 0) or np.any(x >= dim_len):
        raise IndexOutOfRangeError(f"index out of bounds for dimension with length {dim_len}")


@dataclass(frozen=True)
class IntArrayDimIndexer:
    """Integer array selection against a single dimension."""

    dim_len: int
    nitems: int
    dim_sel: npt.NDArray[np.intp]

    def __init__(self, dim_sel: GatherSelector, dim_len: int) -> None:
        if dim_sel is None:
            dim_sel = np.arange(dim_len)
        elif isinstance(dim_sel, slice):
            dim_sel = np.arange(*dim_sel.indices(dim_len))
        elif is_integer(dim_sel):
            dim_sel = [dim_sel]

        # ensure 1d array, never alias the caller's array
        dim_sel = np.asanyarray(dim_sel)
        if dim_sel.size == 0:
            raise IndexOutOfRangeError(f"empty selection for dimension with length {dim_len}")
        if not is_integer_array(dim_sel, 1):
            raise IndexError("integer arrays in a gather selection must be 1-dimensional only")
        dim_sel = dim_sel.astype(np.intp)

        wraparound_indices(dim_sel, dim_len)
        boundscheck_indices(dim_sel, dim_len)

        object.__setattr__(self, "dim_len", dim_len)
        object.__setattr__(self, "nitems", len(dim_sel))
        object.__setattr__(self, "dim_sel", dim_sel)


@dataclass(frozen=True)
class RangeIndexer:
    """Ranges along every dimension of an array, expressible as a strided view."""

    dim_indexers: tuple[RangeDimIndexer, ...]
    shape: ShapeTuple

    def __init__(self, selection: Any, shape: ShapeTuple) -> None:
        selection = replace_ellipsis(selection, shape)
        dim_indexers = tuple(
            RangeDimIndexer(dim_sel, dim_len)
            for dim_sel, dim_len in zip(selection, shape, strict=True)
        )
        object.__setattr__(self, "dim_indexers", dim_indexers)
        object.__setattr__(self, "shape", tuple(d.nitems for d in dim_indexers))

    @property
    def is_complete(self) -> bool:
        return all(d.is_complete for d in self.dim_indexers)

    def project(self, offset: int, strides: tuple[int, ...]) -> tuple[int, tuple[int, ...]]:
        new_strides = []
        for dim_indexer, stride in zip(self.dim_indexers, strides, strict=True):
            offset, new_stride = dim_indexer.project(offset, stride)
            new_strides.append(new_stride)
        return offset, tuple(new_strides)


@dataclass(frozen=True)
class GatherIndexer:
    """Independent lists of indices along every dimension of an array."""

    dim_indexers: tuple[IntArrayDimIndexer, ...]
    shape: ShapeTuple

    def __init__(self, selection: Any, shape: ShapeTuple) -> None:
        selection = replace_ellipsis(selection, shape)
        dim_indexers = tuple(
            IntArrayDimIndexer(dim_sel, dim_len)
            for dim_sel, dim_len in zip(selection, shape, strict=True)
        )
        object.__setattr__(self, "dim_indexers", dim_indexers)
        object.__setattr__(self, "shape", tuple(d.nitems for d in dim_indexers))

    def ix_(self) -> tuple[npt.NDArray[np.intp], ...]:
        """The selection as a numpy open mesh, see ``numpy.ix_``."""
        return cast(tuple[npt.NDArray[np.intp], ...], np.ix_(*(d.dim_sel for d in self.dim_indexers)))
