"""
Whole array operations built on views and gathers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from shapedarray.core.common import is_integer
from shapedarray.core.shape import Shape
from shapedarray.creation import create
from shapedarray.errors import NonConformableShapeError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shapedarray.core.array import ShapedArray
    from shapedarray.core.common import ShapeLike

__all__ = ["roll", "zero_padding"]


def zero_padding(array: ShapedArray, shape: ShapeLike) -> ShapedArray:
    """Center ``array`` in a larger, zero filled array.

    Along each axis, ``out_dim // 2 - in_dim // 2`` zeros precede the elements of
    ``array``.

    Parameters
    ----------
    array : ShapedArray
        The array to pad.
    shape : int or tuple of ints
        The dimensions of the result, of the same rank as ``array`` and at least as large
        along every axis.

    Returns
    -------
    ShapedArray
        ``array`` itself when ``shape`` is its shape, otherwise a new array of the same
        element kind.

    Raises
    ------
    NonConformableShapeError
        If the ranks differ or ``shape`` is smaller than ``array`` along some axis.
    """
    out_shape = Shape(shape)
    if out_shape == array.shape:
        return array
    if out_shape.rank != array.rank:
        raise NonConformableShapeError(
            f"Cannot pad an array of rank {array.rank} to rank {out_shape.rank}."
        )
    ranges = []
    for out_dim, in_dim in zip(out_shape, array.shape, strict=True):
        if out_dim < in_dim:
            raise NonConformableShapeError(
                f"Cannot pad shape {array.shape} to the smaller shape {out_shape}."
            )
        first = out_dim // 2 - in_dim // 2
        ranges.append((first, first + in_dim))
    result = create(out_shape.dims, array.kind)
    result.view(*ranges).assign(array)
    return result


def roll(array: ShapedArray, offsets: Iterable[int] | int | None = None) -> ShapedArray:
    """Circularly shift the elements of ``array`` along each axis.

    Along an axis of length ``dim`` shifted by ``off``, the result holds
    ``dst[j] = src[(j - off) % dim]``, like ``numpy.roll``.

    Parameters
    ----------
    array : ShapedArray
        The array to roll.
    offsets : int or iterable of ints, optional
        One offset per axis. Defaults to ``-(dim // 2)`` along each axis, which moves the
        center element to index 0. This is ``numpy.fft.ifftshift``; along odd-length
        axes it lands one position away from ``dst[j] = src[(j - dim // 2) % dim]``.

    Returns
    -------
    ShapedArray
        ``array`` itself when no axis moves, otherwise a new array.

    Raises
    ------
    NonConformableShapeError
        If there is not one offset per axis.
    """
    dims = array.shape.dims
    if offsets is None:
        offsets = tuple(-(dim // 2) for dim in dims)
    elif is_integer(offsets):
        offsets = (offsets,)  # type: ignore[assignment]
    offsets = tuple(int(off) for off in offsets)  # type: ignore[union-attr]
    if len(offsets) != len(dims):
        raise NonConformableShapeError(
            f"Expected {len(dims)} offsets, one per axis, got {len(offsets)}."
        )
    shifts = [off % dim for off, dim in zip(offsets, dims, strict=True)]
    if not any(shifts):
        return array
    return array.select(
        *((np.arange(dim) - shift) % dim for shift, dim in zip(shifts, dims, strict=True))
    )
