"""Selection of the range to load when an unloaded index is read."""

from typing import Callable, Tuple


def select_window(
    index: int,
    batch_size: int,
    is_taken: Callable[[int], bool],
) -> Tuple[int, int]:
    """Compute the range to request so that `index` gets loaded.

    The window starts `batch_size // 2` positions before the index. Its
    start is then moved past any taken (loaded or already requested) slot
    below the index, the window is extended to `batch_size` from the new
    start and its end is pulled back to the first taken slot above the
    index. The result is the unloaded run around the index that is closest
    to the centered window.

    The window is not clamped to the length of the array. Near the tail the
    loader returns fewer items, and this is how growth is discovered.

    Args:
        index: The position that needs to be loaded. It must not be taken.
        batch_size: The configured width of a request.
        is_taken: Tells if a slot is loaded or covered by a pending
            request.

    Returns:
        The (offset, limit) pair for the loader; limit is at least 1.
    """
    assert batch_size > 0, "Batch size must be positive."
    assert index >= 0, "Index must be non-negative."

    start = max(0, index - batch_size // 2)
    for i in range(index - 1, start - 1, -1):
        if is_taken(i):
            start = i + 1
            break

    end = start + batch_size
    for i in range(index + 1, end):
        if is_taken(i):
            end = i
            break

    return start, max(1, end - start)
