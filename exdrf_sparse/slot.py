"""Slots stored by the sparse array, one per index."""

from typing import Any, Generic, TypeVar, Union

from attrs import define, field

T = TypeVar("T")


@define(frozen=True)
class Loaded(Generic[T]):
    """A slot whose value has been received from the loader.

    Attributes:
        value: The value at this position.
    """

    value: T

    @property
    def is_loaded(self) -> bool:
        return True


@define(frozen=True)
class Unloaded:
    """A slot that has not been loaded yet.

    Instances are also handed out by the array as placeholders for
    positions that are inside the bounds but were not received yet.

    Attributes:
        index: The position this placeholder stands for.
    """

    index: int = field(default=-1)

    @property
    def is_loaded(self) -> bool:
        return False


Slot = Union[Loaded[Any], Unloaded]
