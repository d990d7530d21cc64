import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from attrs import define, field

if TYPE_CHECKING:
    from asyncio import Future  # noqa: F401

logger = logging.getLogger(__name__)


@define
class LoadRequest:
    """A class that represents a request for a range of items.

    Attributes:
        start: The starting index of the items to load.
        count: The number of items to load.
        uniq_id: A unique identifier for the request, assigned when the
            request is added to the manager.
        task: The future that resolves to the result of the loader.
    """

    start: int = field(hash=True)
    count: int = field(hash=True)
    uniq_id: int = field(hash=True, init=False, default=-1)
    task: Optional["Future[Any]"] = field(
        default=None, init=False, repr=False, eq=False
    )

    def __hash__(self) -> int:
        return hash((self.start, self.count, self.uniq_id))

    @property
    def end(self) -> int:
        """One past the last index covered by the request."""
        return self.start + self.count

    def covers(self, index: int) -> bool:
        """Tell if the index is inside the range of this request."""
        return self.start <= index < self.start + self.count


class LoadRequestManager:
    """A class that keeps track of the requests that are in flight.

    Requests managed here never overlap: a new request is only created for
    indices that no pending request covers.

    Attributes:
        uniq_gen: A unique identifier generator for requests.
        requests: The pending requests, keyed by their unique ID.
    """

    uniq_gen: int
    requests: Dict[int, LoadRequest]

    def __init__(self) -> None:
        self.uniq_gen = 0
        self.requests = {}

    def new_request(self, start: int, count: int) -> "LoadRequest":
        """Create a new request for a range of items."""
        assert start >= 0, f"Request start should be positive, got {start}."
        assert count > 0, f"Request count should be positive, got {count}."
        return LoadRequest(start, count)

    def add_request(self, req: "LoadRequest") -> None:
        """Add a request to the list of pending requests.

        Args:
            req: The request to add.
        """
        overlap = self.overlapping(req.start, req.count)
        assert not overlap, f"Request {req} overlaps pending {overlap}."

        uniq_id = self.uniq_gen
        self.uniq_gen += 1
        req.uniq_id = uniq_id
        self.requests[uniq_id] = req

    def get_request(self, uniq_id: int) -> Optional["LoadRequest"]:
        """Locate a pending request by its unique ID."""
        return self.requests.get(uniq_id)

    def pop_request(self, uniq_id: int) -> Optional["LoadRequest"]:
        """Remove a request from the pending list.

        Returns:
            The request or None if it is no longer tracked, which happens
            after `forget_requests()`.
        """
        return self.requests.pop(uniq_id, None)

    def covering(self, index: int) -> Optional["LoadRequest"]:
        """Locate the pending request that covers an index, if any."""
        for req in self.requests.values():
            if req.covers(index):
                return req
        return None

    def overlapping(self, start: int, count: int) -> List["LoadRequest"]:
        """Get the pending requests that intersect [start, start + count)."""
        end = start + count
        return [
            req
            for req in self.requests.values()
            if req.start < end and start < req.end
        ]

    def pending_requests(self) -> List["LoadRequest"]:
        """The pending requests in the order they were issued."""
        return [self.requests[k] for k in sorted(self.requests.keys())]

    def forget_requests(self) -> None:
        """Stop tracking all pending requests and cancel their tasks.

        Results that arrive later for these requests are ignored.
        """
        if self.requests:
            logger.debug("Forgetting %d pending request(s)", len(self.requests))
        forgotten, self.requests = self.requests, {}
        for req in forgotten.values():
            if req.task is not None and not req.task.done():
                req.task.cancel()
