from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from shapedarray.core.array import ShapedArray
from shapedarray.core.buffer import ContiguousStorage, StridedStorage, as_buffer
from shapedarray.core.dtype import KindLike, get_element_kind

if TYPE_CHECKING:
    import numpy.typing as npt

    from shapedarray.core.common import ShapeLike, StridesLike

logger = logging.getLogger(__name__)

__all__ = ["create", "from_numpy", "scalar", "wrap"]


def create(shape: ShapeLike, kind: KindLike = None) -> ShapedArray:
    """Create a zero filled array.

    Parameters
    ----------
    shape : int or tuple of ints
        The dimensions, each at least 1. An empty tuple makes a scalar.
    kind : KindLike, optional
        The element kind. Defaults to the ``array.kind`` configuration value.

    Returns
    -------
    ShapedArray
    """
    return ShapedArray(ContiguousStorage.create(shape, get_element_kind(kind)))


def wrap(
    buffer: npt.ArrayLike,
    shape: ShapeLike | None = None,
    *,
    offset: int | None = None,
    strides: StridesLike | None = None,
) -> ShapedArray:
    """Make an array over an existing one dimensional buffer, without copying it.

    Parameters
    ----------
    buffer : ArrayLike
        The elements. A numpy array, or any object exposing the buffer protocol, is used
        in place; its dtype decides the element kind.
    shape : int or tuple of ints, optional
        The dimensions. Defaults to the length of ``buffer``.
    offset : int, optional
        Position in ``buffer`` of the element at index ``(0, ..., 0)``.
    strides : int or tuple of ints, optional
        Distance in ``buffer`` between consecutive elements along each axis. May be
        negative.

    Returns
    -------
    ShapedArray
        Without ``offset`` and ``strides``, an array whose elements are packed in
        column-major order at the start of ``buffer``. Otherwise a view whose storage
        order is inferred from ``strides``.

    Raises
    ------
    ViewOutOfBoundsError
        If an element would lie outside of ``buffer``.
    UnsupportedKindError
        If the dtype of ``buffer`` is not one of the element kinds.
    """
    data, _ = as_buffer(buffer)
    if shape is None:
        shape = (len(data),)
    if offset is None and strides is None:
        return ShapedArray(ContiguousStorage(data, shape))
    return ShapedArray(StridedStorage(data, shape, offset=offset or 0, strides=strides))


def scalar(value: Any = 0, kind: KindLike = None) -> ShapedArray:
    """Create a rank 0 array holding ``value``."""
    result = create((), kind)
    result.set(value)
    return result


def from_numpy(array: npt.ArrayLike, kind: KindLike = None) -> ShapedArray:
    """Copy a numpy array, or anything convertible to one, into a new array.

    The result is indexed like ``array``. Without ``kind``, the element kind is taken
    from the dtype of ``array``.
    """
    data = np.asarray(array)
    target = get_element_kind(data.dtype if kind is None else kind)
    logger.debug("copying a numpy array of shape %s into kind %s", data.shape, target)
    return ShapedArray(ContiguousStorage(target.cast_array(data.ravel(order="F")), data.shape))
