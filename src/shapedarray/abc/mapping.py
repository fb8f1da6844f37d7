from typing import Any

from typing_extensions import Protocol, runtime_checkable


@runtime_checkable
class ElementGenerator(Protocol):
    """
    A source of element values, e.g. a random number generator.

    ``ShapedArray.fill`` calls ``next`` once per element, in traversal order.
    """

    def next(self) -> Any:
        """
        Produce the next value.

        Returns
        -------
        value : Any
            A number, converted to the element kind of the array being filled.
        """
        ...


@runtime_checkable
class Scanner(Protocol):
    """
    A fold over the elements of an array.

    ``ShapedArray.scan`` calls ``initialize`` with the first element in traversal order,
    then ``update`` with every other element. The traversal order depends on the storage
    order of the array, so a scanner should not depend on it.
    """

    def initialize(self, value: Any) -> None:
        """
        Start the fold.

        Parameters
        ----------
        value : Any
            The first element visited.
        """
        ...

    def update(self, value: Any) -> None:
        """
        Fold one more element.

        Parameters
        ----------
        value : Any
            An element visited after the first one.
        """
        ...
