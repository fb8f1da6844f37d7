"""
Offset and stride arithmetic shared by arrays of every rank.

An addressing descriptor ``(offset, strides)`` maps the index ``(i_1, ..., i_r)`` of an
array of shape ``(d_1, ..., d_r)`` to the position ``offset + sum(stride_k * i_k)`` of a
one dimensional buffer. Strides are counted in elements, not in bytes, and may be
negative.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING

from shapedarray.core.common import Order, ShapeTuple
from shapedarray.errors import InvalidShapeError, ViewOutOfBoundsError

if TYPE_CHECKING:
    from collections.abc import Iterator


def canonical_strides(shape: ShapeTuple) -> tuple[int, ...]:
    """Column-major strides of a packed buffer: the first axis varies fastest."""
    strides = []
    stride = 1
    for dim in shape:
        strides.append(stride)
        stride *= dim
    return tuple(strides)


def is_canonical(offset: int, shape: ShapeTuple, strides: tuple[int, ...]) -> bool:
    return offset == 0 and tuple(strides) == canonical_strides(shape)


def view_bounds(offset: int, shape: ShapeTuple, strides: tuple[int, ...]) -> tuple[int, int]:
    """Smallest and largest buffer positions reached by a descriptor, both inclusive."""
    if len(shape) != len(strides):
        raise InvalidShapeError(shape, f"expected {len(shape)} strides, got {len(strides)}")
    imin = imax = offset
    for dim, stride in zip(shape, strides, strict=True):
        extent = (dim - 1) * stride
        if extent >= 0:
            imax += extent
        else:
            imin += extent
    return imin, imax


def classify_order(strides: tuple[int, ...]) -> Order:
    magnitudes = [abs(s) for s in strides]
    pairs = list(itertools.pairwise(magnitudes))
    if all(a <= b for a, b in pairs):
        return Order.COLUMN_MAJOR
    if all(a >= b for a, b in pairs):
        return Order.ROW_MAJOR
    return Order.NONSPECIFIC


def check_view_strides(
    length: int, offset: int, shape: ShapeTuple, strides: tuple[int, ...]
) -> Order:
    """
    Validate a descriptor against a buffer of ``length`` elements.

    Parameters
    ----------
    length : int
        The number of elements of the buffer.
    offset : int
        Position of the element at index ``(0, ..., 0)``.
    shape : tuple[int, ...]
        The dimensions of the view.
    strides : tuple[int, ...]
        One stride per dimension.

    Returns
    -------
    Order
        The storage order of the descriptor.

    Raises
    ------
    ViewOutOfBoundsError
        If some element of the view lies outside of ``[0, length)``.
    InvalidShapeError
        If there is not one stride per dimension.
    """
    imin, imax = view_bounds(offset, shape, strides)
    if imin < 0 or imax >= length:
        raise ViewOutOfBoundsError(
            f"view with offset {offset}, shape {shape} and strides {strides} spans "
            f"[{imin}, {imax}] which is outside of a buffer of {length} elements"
        )
    return classify_order(strides)


def traversal_axes(order: Order, rank: int) -> tuple[int, ...]:
    """
    Axes from the outermost loop to the innermost one.

    Row-major descriptors are walked with the first axis outermost, every other
    descriptor with the last axis outermost.
    """
    if order is Order.ROW_MAJOR:
        return tuple(range(rank))
    return tuple(reversed(range(rank)))


def iter_indices(shape: ShapeTuple, order: Order) -> Iterator[tuple[int, ...]]:
    """Yield every index of ``shape`` once, nesting the loops as ``traversal_axes`` says."""
    axes = traversal_axes(order, len(shape))
    for loop_index in itertools.product(*(range(shape[axis]) for axis in axes)):
        index = [0] * len(shape)
        for axis, i in zip(axes, loop_index, strict=True):
            index[axis] = i
        yield tuple(index)


def linear_index(offset: int, strides: tuple[int, ...], index: tuple[int, ...]) -> int:
    return offset + sum(s * i for s, i in zip(strides, index, strict=True))
