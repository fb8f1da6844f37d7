from __future__ import annotations

import math
from typing import Any

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from shapedarray import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Order,
    Shape,
    ShapedArray,
    create,
    scalar,
    wrap,
)
from shapedarray.abc.mapping import ElementGenerator, Scanner
from shapedarray.core.dtype import BaseKind
from shapedarray.errors import NonConformableShapeError, UnsupportedKindError


class Counter:
    """An element generator producing 0, 1, 2, ..."""

    def __init__(self) -> None:
        self.count = 0

    def next(self) -> int:
        value = self.count
        self.count += 1
        return value


class Recorder:
    """A scanner remembering the values it was given."""

    def __init__(self) -> None:
        self.first: Any = None
        self.updates: list[Any] = []

    def initialize(self, value: Any) -> None:
        assert self.first is None
        self.first = value

    def update(self, value: Any) -> None:
        self.updates.append(value)


def row_major_view(data: np.ndarray, shape: tuple[int, int]) -> ShapedArray:
    return wrap(data, shape, offset=0, strides=(shape[1], 1))


def nonspecific_view(data: np.ndarray) -> ShapedArray:
    # shape (2, 3, 4) with the first axis varying slowest and the last one fastest but one
    return wrap(data, (2, 3, 4), offset=0, strides=(12, 1, 3))


def test_protocols() -> None:
    assert isinstance(Counter(), ElementGenerator)
    assert isinstance(Recorder(), Scanner)
    assert not isinstance(iter(range(3)), ElementGenerator)


def test_create(kind: BaseKind) -> None:
    a = create((2, 3, 4), kind)
    assert a.shape == Shape((2, 3, 4))
    assert a.rank == 3
    assert a.number == 24
    assert a.kind == kind
    assert a.dtype == kind.to_dtype()
    assert a.order is Order.COLUMN_MAJOR
    assert not a.is_view
    assert_array_equal(np.asarray(a), np.zeros((2, 3, 4)))


def test_dimension() -> None:
    a = create((2, 3))
    assert a.dimension(0) == 2
    assert a.dimension(1) == 3
    assert a.dimension(2) == 1
    assert a.dimension(8) == 1


def test_get_and_set(kind: BaseKind) -> None:
    a = create((2, 3), kind)
    a.set(1, 2, 5)
    assert a.get(1, 2) == 5
    a[0, 1] = 3
    assert a[0, 1] == 3
    assert isinstance(a.get(0, 0), kind.scalar_type)
    assert_array_equal(a.flatten(), [0, 0, 3, 0, 0, 5])


def test_set_casts_to_the_kind() -> None:
    a = create(3, Int8())
    a.set(0, 255)
    a.set(1, 2.7)
    a.set(2, -129)
    assert a.get(0) == -1
    assert a.get(1) == 2
    assert a.get(2) == 127


def test_get_requires_one_index_per_axis() -> None:
    a = create((2, 3))
    with pytest.raises(IndexError):
        a.get(1)
    with pytest.raises(IndexError):
        a.set(1, 2, 3, 4.0)
    with pytest.raises(TypeError):
        a.set()


def test_scalar() -> None:
    a = scalar(3.5)
    assert a.rank == 0
    assert a.number == 1
    assert a.get() == 3.5
    assert a[()] == 3.5
    a.set(1.25)
    assert a.get() == 1.25
    a.scale(2)
    assert a.get() == 2.5
    assert a.min() == a.max() == a.sum() == 2.5


def test_fill(kind: BaseKind, traversal: bool) -> None:
    a = create((2, 3), kind)
    a.fill(3)
    assert_array_equal(np.asarray(a), np.full((2, 3), 3))


def test_fill_casts_the_value() -> None:
    a = create(4, Int16())
    a.fill(40000)
    assert_array_equal(np.asarray(a), -25536)


@pytest.mark.usefixtures("traversal")
def test_float_kinds_accept_large_python_ints() -> None:
    a = create(2, Float64())
    a.fill(2**70)
    assert_array_equal(np.asarray(a), 2.0**70)
    a.increment(2**70)
    assert_array_equal(np.asarray(a), 2.0**71)
    b = create(2, Float32())
    b.set(0, 2**64)
    assert b.get(0) == np.float32(2.0**64)
    b.fill(10**400)
    assert_array_equal(np.asarray(b), np.inf)
    b.fill(iter([-(10**400), 2**100]))
    assert_array_equal(np.asarray(b), [-np.inf, np.float32(2.0**100)])


@pytest.mark.usefixtures("traversal")
def test_fill_with_generator_uses_traversal_order() -> None:
    a = create((2, 3), Int32())
    a.fill(Counter())
    assert_array_equal(a.flatten(), np.arange(6))

    data = np.zeros(6, dtype=np.int32)
    b = row_major_view(data, (2, 3))
    assert b.order is Order.ROW_MAJOR
    b.fill(Counter())
    # both orders walk the buffer sequentially
    assert_array_equal(data, np.arange(6))
    assert_array_equal(np.asarray(b), [[0, 1, 2], [3, 4, 5]])


@pytest.mark.usefixtures("traversal")
def test_fill_with_iterator() -> None:
    a = create((3, 2), Float64())
    a.fill(iter([0.5, 1.5, 2.5, 3.5, 4.5, 5.5]))
    assert_array_equal(a.flatten(), [0.5, 1.5, 2.5, 3.5, 4.5, 5.5])


def test_fill_with_short_iterator_leaves_array_unchanged() -> None:
    a = create(4, Int32())
    a.fill(1)
    with pytest.raises(ValueError, match="exhausted after 2 of 4"):
        a.fill(iter([7, 8]))
    assert_array_equal(np.asarray(a), [1, 1, 1, 1])


def test_increment_decrement_scale(kind: BaseKind, traversal: bool) -> None:
    a = create((2, 2), kind)
    a.fill(Counter())
    a.increment(3)
    assert_array_equal(a.flatten(), [3, 4, 5, 6])
    a.decrement(1)
    assert_array_equal(a.flatten(), [2, 3, 4, 5])
    a.scale(2)
    assert_array_equal(a.flatten(), [4, 6, 8, 10])


@pytest.mark.usefixtures("traversal")
def test_integer_arithmetic_wraps() -> None:
    a = create(3, Int8())
    a.fill(127)
    a.increment(1)
    assert_array_equal(np.asarray(a), -128)
    a.fill(100)
    a.scale(3)
    assert_array_equal(np.asarray(a), 44)


@pytest.mark.usefixtures("traversal")
def test_operand_is_cast_to_the_kind() -> None:
    a = create(2, Int32())
    a.increment(2.9)
    assert_array_equal(np.asarray(a), 2)


@pytest.mark.usefixtures("traversal")
def test_float32_arithmetic() -> None:
    a = create(1, Float32())
    a.fill(1.0)
    a.increment(1e-8)
    assert a.get(0) == np.float32(1.0)
    a.fill(0.1)
    a.scale(3)
    assert a.get(0) == np.float32(0.1) * np.float32(3)


@pytest.mark.usefixtures("traversal")
def test_map() -> None:
    a = create((2, 2), Int16())
    a.fill(Counter())
    a.map(lambda v: v * v + 1)
    assert_array_equal(a.flatten(), [1, 2, 5, 10])


@pytest.mark.usefixtures("traversal")
def test_map_with_ufunc() -> None:
    a = wrap(np.array([1.0, 4.0, 9.0]))
    a.map(np.sqrt)
    assert_array_equal(np.asarray(a), [1.0, 2.0, 3.0])
    b = wrap(np.array([1, 4, 10], dtype=np.int32))
    b.map(np.sqrt)
    assert_array_equal(np.asarray(b), [1, 2, 3])



@pytest.mark.usefixtures("traversal")
def test_map_with_large_python_ints() -> None:
    a = create(3, Int8())
    a.map(lambda v: 2**70 + 5)
    assert_array_equal(np.asarray(a), 5)
    b = create(2, Float64())
    b.map(lambda v: 2**70)
    assert_array_equal(np.asarray(b), 2.0**70)

@pytest.mark.usefixtures("traversal")
def test_scan_visits_in_traversal_order() -> None:
    a = wrap(np.arange(6), (2, 3))
    recorder = a.scan(Recorder())
    assert recorder.first == 0
    assert recorder.updates == [1, 2, 3, 4, 5]

    b = row_major_view(np.arange(6), (2, 3))
    recorder = b.scan(Recorder())
    assert recorder.first == 0
    assert recorder.updates == [1, 2, 3, 4, 5]

    c = nonspecific_view(np.arange(24))
    assert c.order is Order.NONSPECIFIC
    recorder = c.scan(Recorder())
    visited = [recorder.first, *recorder.updates]
    assert sorted(visited) == list(range(24))
    # last axis outermost, first axis innermost
    assert visited[:4] == [0, 12, 1, 13]


@pytest.mark.usefixtures("traversal")
def test_scan_seeds_with_the_first_visited_element() -> None:
    a = wrap(np.arange(6), (2, 3), offset=5, strides=(-1, -2))
    recorder = a.scan(Recorder())
    assert recorder.first == 5
    assert len(recorder.updates) == 5


def test_scan_scalar() -> None:
    recorder = scalar(4, Int32()).scan(Recorder())
    assert recorder.first == 4
    assert recorder.updates == []


@pytest.mark.parametrize("dtype", ["int16", "int32", "int64", "float32", "float64"])
def test_reductions(dtype: str) -> None:
    a = wrap(np.array([3, 1, 4, 1, 5, 9], dtype=dtype), (2, 3))
    assert a.min() == 1
    assert a.max() == 9
    assert a.get_min_and_max() == (1, 9)
    assert a.sum() == 23
    assert a.average() == pytest.approx(23 / 6)
    assert isinstance(a.min(), int if dtype.startswith("int") else float)


def test_int8_reductions_are_unsigned() -> None:
    a = wrap(np.array([-1, 1], dtype=np.int8))
    assert a.min() == 1
    assert a.max() == 255
    assert a.get_min_and_max() == (1, 255)
    assert a.sum() == 256
    assert a.average() == 128.0
    assert a.get(0) == -1


def test_min_and_max_skip_nan_after_the_first_element() -> None:
    a = wrap(np.array([1.0, np.nan, 0.5]))
    assert a.min() == 0.5
    assert a.max() == 1.0
    assert a.get_min_and_max() == (0.5, 1.0)
    b = wrap(np.array([[2.0, np.nan], [np.nan, -3.0]], dtype=np.float32).ravel(), (2, 2))
    assert b.get_min_and_max() == (-3.0, 2.0)


def test_min_and_max_keep_a_nan_first_element() -> None:
    a = wrap(np.array([np.nan, 1.0, 0.5], dtype=np.float32))
    assert math.isnan(a.min())
    assert math.isnan(a.max())
    assert all(math.isnan(v) for v in a.get_min_and_max())


def test_min_and_max_seed_is_the_element_at_the_origin() -> None:
    reversed_view = wrap(np.array([np.nan, 2.0, 1.0]), (3,), offset=2, strides=(-1,))
    assert reversed_view.get_min_and_max() == (1.0, 2.0)
    reversed_view = wrap(np.array([1.0, 2.0, np.nan]), (3,), offset=2, strides=(-1,))
    assert math.isnan(reversed_view.min())
    assert math.isnan(reversed_view.max())


def test_integer_sums_wrap() -> None:
    assert wrap(np.array([2**31 - 1, 1], dtype=np.int32)).sum() == -(2**31)
    assert wrap(np.array([30000, 30000], dtype=np.int16)).sum() == 60000
    assert wrap(np.array([2**63 - 1, 1], dtype=np.int64)).sum() == -(2**63)


def test_float32_sum_accumulates_in_float32() -> None:
    a = wrap(np.array([1e8, 1.0], dtype=np.float32))
    assert a.sum() == 1e8
    assert a.average() == 5e7


def test_reductions_of_a_strided_view() -> None:
    data = np.array([9, 0, -3, 0, 7, 0, 2], dtype=np.int32)
    a = wrap(data, (2, 2), offset=0, strides=(2, 4))
    assert a.min() == -3
    assert a.max() == 9
    assert a.sum() == 15


def test_flatten_zero_copy_contract() -> None:
    buffer = np.arange(12.0)
    a = wrap(buffer, (3, 4))
    assert a.flatten(force_copy=False) is buffer
    copied = a.flatten(force_copy=True)
    assert copied is not buffer
    assert_array_equal(copied, buffer)


def test_flatten_of_a_view_is_column_major() -> None:
    a = row_major_view(np.arange(6.0), (2, 3))
    assert_array_equal(a.flatten(), [0, 3, 1, 4, 2, 5])


def test_copy_is_independent() -> None:
    buffer = np.arange(6.0)
    a = wrap(buffer, (2, 3), offset=0, strides=(3, 1))
    b = a.copy()
    assert not b.is_view
    assert b.order is Order.COLUMN_MAJOR
    assert b.all_equal(a)
    b.fill(0)
    assert_array_equal(buffer, np.arange(6.0))


def test_as_1d() -> None:
    buffer = np.arange(8.0)
    a = wrap(buffer, (2, 3))
    flat = a.as_1d()
    assert flat.shape == Shape((6,))
    assert flat.storage.data is buffer
    assert flat.as_1d() is flat

    b = row_major_view(np.arange(6.0), (2, 3))
    flat = b.as_1d()
    assert_array_equal(np.asarray(flat), [0, 3, 1, 4, 2, 5])
    assert not np.shares_memory(flat.storage.data, b.storage.data)


@pytest.mark.usefixtures("traversal")
def test_assign_from_array_of_another_kind() -> None:
    a = create((2, 3), Float64())
    source = wrap(np.arange(6, dtype=np.int32), (2, 3))
    assert a.assign(source) is a
    assert_array_equal(a.flatten(), np.arange(6.0))

    b = create((2, 3), Int8())
    b.assign(wrap(np.array([1.9, -1.9, 300.0, 0, 0, 0]), (2, 3)))
    assert_array_equal(b.flatten(), [1, -1, 44, 0, 0, 0])


@pytest.mark.usefixtures("traversal")
def test_assign_from_flat_buffer_is_column_major() -> None:
    a = create((2, 3), Int32())
    a.assign([0, 1, 2, 3, 4, 5])
    assert a.get(1, 0) == 1
    assert a.get(0, 1) == 2
    b = row_major_view(np.zeros(6), (2, 3))
    b.assign(np.arange(6.0))
    assert_array_equal(np.asarray(b), [[0, 2, 4], [1, 3, 5]])


def test_assign_checks_shapes_before_writing() -> None:
    a = create((2, 3))
    a.fill(1)
    with pytest.raises(NonConformableShapeError):
        a.assign(create((3, 2)))
    with pytest.raises(NonConformableShapeError):
        a.assign(np.arange(5.0))
    with pytest.raises(UnsupportedKindError):
        a.assign(np.zeros(6, dtype=bool))
    assert_array_equal(np.asarray(a), 1)


@pytest.mark.usefixtures("traversal")
def test_assign_between_overlapping_views() -> None:
    buffer = np.arange(5.0)
    a = wrap(buffer)
    a.view(slice(1, None)).assign(a.view(slice(0, -1)))
    assert_array_equal(buffer, [0, 0, 1, 2, 3])


@pytest.mark.usefixtures("traversal")
def test_traversals_agree_on_every_order() -> None:
    data = np.arange(24.0)
    a = nonspecific_view(data)
    a.increment(1)
    a.scale(2)
    assert_array_equal(data, (np.arange(24.0) + 1) * 2)


def test_fill_slice_scale_scenario() -> None:
    a = create((3, 4), Float64())
    a.fill(1.0)
    column = a.slice(-1, axis=1)
    assert column.rank == 1
    assert column.shape == Shape((3,))
    column.scale(2.0)
    for i in range(3):
        assert a.get(i, 3) == 2.0
        for j in range(3):
            assert a.get(i, j) == 1.0


def test_all_equal() -> None:
    a = wrap(np.arange(6.0), (2, 3))
    assert a.all_equal(a.copy())
    assert not a.all_equal(a.to_float32())
    assert not a.all_equal(wrap(np.arange(6.0), (3, 2)))
    assert not a.all_equal(np.arange(6.0))
    b = wrap(np.array([np.nan, 1.0]))
    assert b.all_equal(b.copy())


def test_array_interface() -> None:
    a = wrap(np.arange(6, dtype=np.int16), (2, 3))
    result = np.asarray(a)
    assert result.dtype == np.int16
    assert_array_equal(result, np.arange(6).reshape((2, 3), order="F"))
    result[0, 0] = 9
    assert a.get(0, 0) == 0
    assert np.asarray(a, dtype=np.float64).dtype == np.float64


def test_repr() -> None:
    assert repr(create((2, 3), Int8())) == "<ShapedArray shape=(2, 3) kind=int8 order=COLUMN_MAJOR>"
    view = create((2, 3), Int8()).slice(0)
    assert repr(view) == "<ShapedArray shape=(2) kind=int8 order=COLUMN_MAJOR view>"
