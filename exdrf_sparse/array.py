import asyncio
import concurrent.futures
import inspect
import logging
from functools import partial
from typing import (
    TYPE_CHECKING,
    Any,
    Generic,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from exdrf_sparse.cache import SlotList
from exdrf_sparse.config import SparseArrayConfig
from exdrf_sparse.errors import LoadFailure, SparseArrayError
from exdrf_sparse.loader import LoadResult
from exdrf_sparse.observers import ObserverList
from exdrf_sparse.requests import LoadRequestManager
from exdrf_sparse.window import select_window

if TYPE_CHECKING:
    from exdrf_sparse.loader import Loader  # noqa: F401
    from exdrf_sparse.requests import LoadRequest  # noqa: F401

T = TypeVar("T")
logger = logging.getLogger(__name__)


class SparseArray(Generic[T]):
    """A sequence whose items are loaded in batches, on demand.

    The array knows its length from the last answer of the loader and
    only holds the items it was asked for. Reading an index that was not
    loaded yet returns an `Unloaded` placeholder and asks the loader for a
    window of items around that index; reads that fall inside a request
    that is still in flight do not issue another request.

    Each time a result arrives the items are stored, the length is updated
    and the observers are told about the change. Storing the items is
    reported as the removal of the placeholders and the addition of the
    values (start, removed, added); growth or shrinkage of the length is
    reported separately, after that.

    All methods must be called from the thread that runs the event loop.
    Results are applied from done-callbacks scheduled on that loop.

    Attributes:
        config: The settings of the array.
        cache: The slots, indexed by position.
        requests: The bookkeeping of the requests in flight.
        observers: The objects informed about changes.
        last_error: The most recent load failure, if any.
    """

    config: SparseArrayConfig
    cache: SlotList[T]
    requests: LoadRequestManager
    observers: ObserverList
    last_error: Optional[LoadFailure]
    _loop: asyncio.AbstractEventLoop
    _is_loaded: bool
    _disposed: bool
    _failures: List[LoadFailure]

    def __init__(
        self,
        config: SparseArrayConfig,
        observers: Optional[Iterable[Any]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize the array and issue the first request.

        Args:
            config: The settings of the array.
            observers: Observers to register before the first request is
                issued.
            loop: The event loop the requests are scheduled on. By default
                the running loop is used, so the array must be created from
                a coroutine or a callback.

        Raises:
            RuntimeError: no loop was given and none is running.
        """
        self.config = config
        self.cache = SlotList()
        self.requests = LoadRequestManager()
        self.observers = ObserverList()
        self.last_error = None
        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self._is_loaded = False
        self._disposed = False
        self._failures = []

        for observer in observers or ():
            self.observers.add(observer)

        self.request_items(0, config.batch_size)

    @classmethod
    def create(
        cls,
        batch_size: int,
        load: "Loader",
        observers: Optional[Iterable[Any]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> "SparseArray[Any]":
        """Validate the settings and create an array.

        Raises:
            InvalidConfiguration: the batch size or the loader are invalid.
        """
        return cls(
            SparseArrayConfig(batch_size=batch_size, load=load),
            observers=observers,
            loop=loop,
        )

    def __len__(self) -> int:
        return len(self.cache)

    def __getitem__(self, index: Union[int, slice]) -> Any:
        if isinstance(index, slice):
            return [
                self.object_at(i) for i in range(*index.indices(len(self)))
            ]
        return self.object_at(index)

    def __iter__(self) -> Iterator[Any]:
        for i in range(len(self.cache)):
            yield self.object_at(i)

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} length={len(self.cache)} "
            f"loaded={self.cache.true_size} "
            f"pending={len(self.requests.requests)}>"
        )

    @property
    def length(self) -> int:
        """The number of items reported by the last answer of the loader."""
        return len(self.cache)

    @property
    def batch_size(self) -> int:
        return self.config.batch_size

    @property
    def is_loaded(self) -> bool:
        """True once the result of a request has been applied."""
        return self._is_loaded

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def loaded_count(self) -> int:
        """The number of positions that hold a value."""
        return self.cache.true_size

    @property
    def is_fully_loaded(self) -> bool:
        """Return True if every position holds a value."""
        return self._is_loaded and self.cache.true_size == len(self.cache)

    @property
    def pending(self) -> List["LoadRequest"]:
        """The requests in flight, in the order they were issued."""
        return self.requests.pending_requests()

    def add_observer(self, observer: Any) -> None:
        """Register an object to be informed about changes.

        See `ArrayObserver` for the methods that are called.
        """
        self.observers.add(observer)

    def remove_observer(self, observer: Any) -> None:
        self.observers.remove(observer)

    def object_at(self, index: int) -> Any:
        """Get the item at a position.

        Args:
            index: The position of the item.

        Returns:
            None if the index is outside [0, length); the value if it has
            been loaded; an `Unloaded` placeholder otherwise, in which case
            a request that covers the index is issued unless one is
            already in flight.
        """
        if index < 0 or index >= len(self.cache):
            return None

        slot = self.cache[index]
        if slot.is_loaded:
            return slot.value  # type: ignore[union-attr]

        if not self._disposed and self.requests.covering(index) is None:
            start, count = select_window(
                index, self.config.batch_size, self._is_taken
            )
            self.request_items(start, count)
        return slot

    def peek(self, index: int) -> Any:
        """Get the slot at a position without issuing requests.

        Returns:
            A `Loaded` or `Unloaded` slot, or None if the index is outside
            [0, length).
        """
        if index < 0 or index >= len(self.cache):
            return None
        return self.cache[index]

    def loaded_items(self) -> Iterator[Tuple[int, T]]:
        """Iterate the (index, value) pairs that have been loaded."""
        return self.cache.loaded_items()

    def _is_taken(self, index: int) -> bool:
        return (
            self.cache.is_loaded(index)
            or self.requests.covering(index) is not None
        )

    def request_items(self, start: int, count: int) -> Optional["LoadRequest"]:
        """Ask the loader for a range of items.

        The range must not overlap a request that is in flight.

        Args:
            start: The starting index of the items to load.
            count: The number of items to load.

        Returns:
            The new request or None if the loader failed right away.

        Raises:
            SparseArrayError: the array has been disposed.
        """
        if self._disposed:
            raise SparseArrayError("Cannot load items into a disposed array")
        req = self.requests.new_request(start, count)
        self.requests.add_request(req)

        try:
            req.task = self._as_future(self.config.load(start, count))
        except Exception as e:
            self.requests.pop_request(req.uniq_id)
            self._request_failed(req, e)
            return None

        req.task.add_done_callback(partial(self._load_items, req.uniq_id))
        logger.debug(
            "Request %d issued for %d item(s) from %d, %d in flight",
            req.uniq_id,
            req.count,
            req.start,
            len(self.requests.requests),
        )
        self.observers.emit("request_issued", self, req)
        return req

    def _as_future(self, value: Any) -> "asyncio.Future[Any]":
        """Turn the return value of the loader into a future on our loop."""
        if isinstance(value, concurrent.futures.Future):
            return asyncio.wrap_future(value, loop=self._loop)
        if inspect.isawaitable(value):
            return asyncio.ensure_future(value, loop=self._loop)
        raise TypeError(
            "The loader must return an awaitable, "
            f"got {value.__class__.__name__}"
        )

    def _load_items(self, uniq_id: int, task: "asyncio.Future[Any]") -> None:
        """We are informed that a request has been answered."""
        req = self.requests.get_request(uniq_id)
        if req is None or self._disposed:
            logger.debug("Request %d is no longer tracked", uniq_id)
            if not task.cancelled() and task.exception() is not None:
                logger.debug(
                    "Ignoring the error of request %d: %s",
                    uniq_id,
                    task.exception(),
                )
            return

        # The request stays pending while its result is applied so that
        # reads made by observers inside its range are not requested again.
        try:
            if task.cancelled():
                self._request_failed(req, asyncio.CancelledError())
                return
            error = task.exception()
            if error is not None:
                self._request_failed(req, error)
                return

            try:
                result = LoadResult.coerce(task.result())
            except (TypeError, ValueError) as e:
                self._request_failed(req, e)
                return

            self._apply_result(req, result)
        finally:
            self.requests.pop_request(uniq_id)

        self._is_loaded = True
        logger.debug(
            "Request %d completed with %d item(s), length is %d, "
            "%d in flight",
            req.uniq_id,
            len(result.items),
            len(self.cache),
            len(self.requests.requests),
        )
        self.observers.emit("request_completed", self, req)

    def _apply_result(self, req: "LoadRequest", result: LoadResult[T]) -> None:
        """Store the items of a result and update the length."""
        total = result.total
        items = list(result.items)
        if len(items) > req.count:
            logger.warning(
                "Request %d asked for %d item(s) but received %d",
                req.uniq_id,
                req.count,
                len(items),
            )
        items = items[: max(0, min(req.count, total - req.start))]

        offset = req.start
        n = len(items)
        old = len(self.cache)
        if n > 0:
            if offset <= old:
                change = (offset, min(n, old - offset), n)
            else:
                # The length dropped below this request while it was in
                # flight; the gap up to the offset is left unloaded.
                change = (old, 0, offset + n - old)
            with self.observers.changing(self, *change):
                for i, value in enumerate(items):
                    self.cache[offset + i] = value

        mid = len(self.cache)
        if total > mid:
            with self.observers.changing(self, mid, 0, total - mid):
                self.cache.set_size(total)
        elif total < mid:
            with self.observers.changing(self, total, mid - total, 0):
                self.cache.set_size(total)

    def _request_failed(self, req: "LoadRequest", error: BaseException) -> None:
        failure = LoadFailure(
            req.start,
            req.count,
            f"Failed to load {req.count} item(s) starting at "
            f"{req.start}: {error!r}",
        )
        failure.__cause__ = error
        self.last_error = failure
        self._failures.append(failure)
        logger.error(
            "Request %d for %d item(s) from %d failed: %s",
            req.uniq_id,
            req.count,
            req.start,
            error,
            exc_info=error,
        )
        self.observers.emit("request_failed", self, req, failure)

    async def settle(self) -> None:
        """Wait until no request is in flight.

        Requests issued while waiting, for example by observers, are waited
        for as well.

        Raises:
            LoadFailure: the first failure that happened since the last call
                to this method.
        """
        while self.requests.requests:
            tasks = [
                req.task
                for req in self.requests.pending_requests()
                if req.task is not None
            ]
            if not tasks:
                break
            await asyncio.wait(tasks)

        if self._failures:
            failures, self._failures = self._failures, []
            raise failures[0]

    def reset(self) -> None:
        """Drop everything and start again with the first batch.

        The removal of all positions is reported to the observers. Results
        of the requests that are in flight are ignored.

        Raises:
            SparseArrayError: the array has been disposed.
        """
        if self._disposed:
            raise SparseArrayError("Cannot reset a disposed array")
        self.requests.forget_requests()
        self._failures = []
        self._is_loaded = False

        old = len(self.cache)
        if old > 0:
            with self.observers.changing(self, 0, old, 0):
                self.cache.clear()
        else:
            self.cache.clear()

        self.request_items(0, self.config.batch_size)

    def dispose(self) -> None:
        """Release the observers and stop applying results.

        Requests in flight are cancelled; results that still arrive are
        ignored. Calling this method more than once has no effect.
        """
        if self._disposed:
            return
        self._disposed = True
        self.requests.forget_requests()
        self.observers.clear()
        logger.debug("Sparse array %r disposed", self)
