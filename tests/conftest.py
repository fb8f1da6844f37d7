from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from shapedarray.core.config import config
from shapedarray.core.dtype import ELEMENT_KINDS, BaseKind

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def reset_config() -> Generator[None, None, None]:
    config.reset()
    yield
    config.reset()


@pytest.fixture(params=[cls() for cls in ELEMENT_KINDS], ids=lambda kind: kind.name)
def kind(request: pytest.FixtureRequest) -> BaseKind:
    return request.param


@pytest.fixture(params=[True, False], ids=["vectorized", "element-loop"])
def traversal(request: pytest.FixtureRequest) -> Generator[bool, None, None]:
    with config.set({"traversal.vectorize": request.param}):
        yield request.param
