from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import overload

from shapedarray.core.common import ShapeLike, parse_shapelike, product
from shapedarray.errors import IndexOutOfRangeError


@dataclass(frozen=True)
class Shape:
    """
    An immutable list of dimensions.

    The rank is the number of dimensions, between 0 and 9. A rank 0 shape is the shape
    of a scalar and holds a single element.

    Attributes
    ----------
    dims : tuple[int, ...]
        The length of each axis, every one of them at least 1.
    """

    dims: tuple[int, ...]

    def __init__(self, dims: ShapeLike | Shape = ()) -> None:
        if isinstance(dims, Shape):
            dims = dims.dims
        object.__setattr__(self, "dims", parse_shapelike(dims))

    @classmethod
    def make(cls, *dims: int) -> Shape:
        return cls(dims)

    @property
    def rank(self) -> int:
        return len(self.dims)

    @property
    def number(self) -> int:
        """The number of elements."""
        return product(self.dims)

    def dimension(self, k: int) -> int:
        """
        Length of axis ``k``. Axes beyond the rank have length 1.
        """
        if k < 0:
            raise IndexOutOfRangeError(f"negative axis {k}")
        if k >= self.rank:
            return 1
        return self.dims[k]

    def __len__(self) -> int:
        return len(self.dims)

    def __iter__(self) -> Iterator[int]:
        return iter(self.dims)

    @overload
    def __getitem__(self, key: int) -> int: ...

    @overload
    def __getitem__(self, key: slice) -> tuple[int, ...]: ...

    def __getitem__(self, key: int | slice) -> int | tuple[int, ...]:
        return self.dims[key]

    def __str__(self) -> str:
        return "(" + ", ".join(str(d) for d in self.dims) + ")"
