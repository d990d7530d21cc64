import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generator, List, Tuple

from attrs import define, field

if TYPE_CHECKING:
    from exdrf_sparse.array import SparseArray  # noqa: F401
    from exdrf_sparse.requests import LoadRequest  # noqa: F401

logger = logging.getLogger(__name__)


class ArrayObserver:
    """Base class for objects that want to be informed about changes.

    Every mutation of the visible sequence is reported through a
    `will_change()` call before the store is altered and a `did_change()`
    call after, both with the same arguments: the first affected index,
    the number of positions removed and the number of positions added.
    Replacing unloaded placeholders with values is reported as a removal
    and an addition at the same index.

    The request hooks are informative and do not correspond to mutations.
    """

    def will_change(
        self, array: "SparseArray", start: int, removed: int, added: int
    ) -> None:
        """The array is about to change."""

    def did_change(
        self, array: "SparseArray", start: int, removed: int, added: int
    ) -> None:
        """The array has changed."""

    def request_issued(
        self, array: "SparseArray", request: "LoadRequest"
    ) -> None:
        """A load request has been sent to the loader."""

    def request_completed(
        self, array: "SparseArray", request: "LoadRequest"
    ) -> None:
        """The result of a load request has been applied."""

    def request_failed(
        self, array: "SparseArray", request: "LoadRequest", error: Exception
    ) -> None:
        """A load request failed."""


class ObserverList:
    """Dispatches events to a list of observers.

    Observers do not need to derive from `ArrayObserver`; missing methods
    are skipped. An exception raised by an observer is logged and does not
    prevent the delivery to the other observers.
    """

    observers: List[Any]

    def __init__(self) -> None:
        self.observers = []

    def __len__(self) -> int:
        return len(self.observers)

    def add(self, observer: Any) -> None:
        """Add an observer; adding the same observer twice has no effect."""
        if not any(o is observer for o in self.observers):
            self.observers.append(observer)

    def remove(self, observer: Any) -> None:
        """Remove an observer; unknown observers are ignored."""
        self.observers = [o for o in self.observers if o is not observer]

    def clear(self) -> None:
        self.observers = []

    def emit(self, event: str, *args: Any) -> None:
        """Call the `event` method of every observer that has one."""
        # Observers may unsubscribe while being notified.
        for observer in list(self.observers):
            handler = getattr(observer, event, None)
            if handler is None:
                continue
            try:
                handler(*args)
            except Exception as e:
                logger.error(
                    "Observer %r raised in %s: %s",
                    observer,
                    event,
                    e,
                    exc_info=True,
                )

    @contextmanager
    def changing(
        self, array: "SparseArray", start: int, removed: int, added: int
    ) -> Generator[None, None, None]:
        """Bracket a mutation with `will_change` and `did_change`.

        `did_change` is not delivered if the body raises.
        """
        self.emit("will_change", array, start, removed, added)
        yield
        self.emit("did_change", array, start, removed, added)


@define
class ChangeRecorder(ArrayObserver):
    """An observer that keeps a log of the events it receives.

    Attributes:
        will: The (start, removed, added) tuples from `will_change`.
        did: The (start, removed, added) tuples from `did_change`.
        issued: The (start, count) pairs of issued requests.
        failed: The (start, count, error) tuples of failed requests.
    """

    will: List[Tuple[int, int, int]] = field(factory=list)
    did: List[Tuple[int, int, int]] = field(factory=list)
    issued: List[Tuple[int, int]] = field(factory=list)
    failed: List[Tuple[int, int, Exception]] = field(factory=list)

    def will_change(self, array, start, removed, added):
        self.will.append((start, removed, added))

    def did_change(self, array, start, removed, added):
        self.did.append((start, removed, added))

    def request_issued(self, array, request):
        self.issued.append((request.start, request.count))

    def request_failed(self, array, request, error):
        self.failed.append((request.start, request.count, error))

    def clear(self) -> None:
        """Forget everything recorded so far."""
        self.will.clear()
        self.did.clear()
        self.issued.clear()
        self.failed.clear()
