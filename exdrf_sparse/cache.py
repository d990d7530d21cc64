"""Cache module providing the sparse slot store."""

from typing import Any, Dict, Generic, Iterator, KeysView, Tuple, TypeVar

from exdrf_sparse.slot import Loaded, Slot, Unloaded

T = TypeVar("T")


class SlotList(Generic[T]):
    """A sparse list of slots with a logical size.

    Only loaded slots are stored. Reading an index that is inside the
    logical size but was never written produces an `Unloaded` slot which
    is not stored.

    Attributes:
        true_size: Number of loaded slots held by the list.
    """

    def __init__(self) -> None:
        self._data: Dict[int, Loaded[T]] = {}
        self._size = 0

    @property
    def true_size(self) -> int:
        """Get the number of loaded slots.

        Returns:
            The count of slots that hold a value, which may be less than
            the logical size.
        """
        return len(self._data)

    def __getitem__(self, index: int) -> Slot:
        """Get the slot at the specified index.

        Args:
            index: The index to retrieve.

        Returns:
            The loaded slot at the index or a new `Unloaded` slot.

        Raises:
            IndexError: If the index is outside [0, size).
        """
        if index < 0 or index >= self._size:
            raise IndexError(
                f"Index {index} out of range. List has {self._size} items."
            )
        result = self._data.get(index)
        if result is None:
            return Unloaded(index)
        return result

    def __setitem__(self, index: int, value: T) -> None:
        """Store a loaded value at the specified index.

        Args:
            index: The index to set.
            value: The value to store at the index.
        """
        assert index >= 0, "Index must be non-negative."
        self._data[index] = Loaded(value)
        if index >= self._size:
            self._size = index + 1

    def __contains__(self, index: Any) -> bool:
        """Check if the index is within the valid range [0, size)."""
        return isinstance(index, int) and 0 <= index < self._size

    def __len__(self) -> int:
        """Get the logical size of the list."""
        return self._size

    def is_loaded(self, index: int) -> bool:
        """Tell if a value has been stored at this index."""
        return index in self._data

    def keys(self) -> KeysView[int]:
        """Get the indices of all loaded slots."""
        return self._data.keys()

    def loaded_items(self) -> Iterator[Tuple[int, T]]:
        """Iterate (index, value) pairs of loaded slots in index order."""
        for index in sorted(self._data.keys()):
            yield index, self._data[index].value

    def clear(self) -> None:
        """Clear all stored slots and reset the size to zero."""
        self._data.clear()
        self._size = 0

    def set_size(self, size: int) -> None:
        """Set the logical size of the list.

        If the new size is smaller than the current size, slots at
        indices >= size are removed from storage.

        Args:
            size: The new logical size. Must be non-negative.
        """
        assert size >= 0, "Size must be non-negative."
        if size < self._size:
            to_del = [i for i in self._data.keys() if i >= size]
            for i in to_del:
                del self._data[i]
        self._size = size
