"""
The config module is responsible for managing the configuration of shapedarray and is based on
the Donfig python library.

Example:
    The element kind used by ``shapedarray.create`` when none is given is read from
    ``array.kind``. It can be changed for a block of code with ``config.set``:

    ```python
    from shapedarray import create
    from shapedarray.core.config import config

    with config.set({"array.kind": "int32"}):
        a = create((3, 4))
    ```

    The same value can be set with the environment variable ``SHAPEDARRAY_ARRAY__KIND``. The
    double underscore ``__`` is used to indicate nested access.

    ```bash
    export SHAPEDARRAY_ARRAY__KIND="int32"
    ```

For more information, see the Donfig documentation at https://github.com/pytroll/donfig.
"""

from __future__ import annotations

from typing import Any

from donfig import Config as DConfig


class BadConfigError(ValueError):
    _msg = "bad Config: %r"


class Config(DConfig):  # type: ignore[misc]
    """The Config will collect configuration from config files and environment variables

    Example environment variables:
    Grabs environment variables of the form "SHAPEDARRAY_FOO__BAR_BAZ=123" and
    turns these into config variables of the form ``{"foo": {"bar-baz": 123}}``
    It transforms the key and value in the following way:

    -  Lower-cases the key text
    -  Treats ``__`` (double-underscore) as nested access
    -  Calls ``ast.literal_eval`` on the value

    """

    def reset(self) -> None:
        self.clear()
        self.refresh()


# The default configuration for shapedarray
config = Config(
    "shapedarray",
    defaults=[
        {
            "array": {"kind": "float64"},
            "flatten": {"force_copy": False},
            "traversal": {"vectorize": True},
        }
    ],
)


def parse_force_copy(data: Any) -> bool:
    """Resolve a ``force_copy`` argument, falling back to ``flatten.force_copy``."""
    if data is None:
        data = config.get("flatten.force_copy")
    if isinstance(data, bool):
        return data
    raise BadConfigError(f"Expected a bool for force_copy, got {data!r} instead.")
