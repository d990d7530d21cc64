import asyncio
import logging
from typing import (
    Any,
    Awaitable,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
)

from attrs import define, field

T = TypeVar("T")
logger = logging.getLogger(__name__)


@define(frozen=True)
class LoadResult(Generic[T]):
    """The answer of a loader to a range request.

    Attributes:
        items: The values for [offset, offset + len(items)), in order. There
            may be fewer items than requested.
        total: The number of items in the source at the time of the request.
    """

    items: Sequence[T] = field(converter=tuple)
    total: int = field()

    @total.validator
    def _check_total(self, attribute, value):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"total must be an integer, got {value!r}")
        if value < 0:
            raise ValueError(f"total must be non-negative, got {value}")

    @classmethod
    def coerce(cls, value: Any) -> "LoadResult[Any]":
        """Accept a `LoadResult`, a mapping or an (items, total) pair.

        Raises:
            TypeError: the value has none of the accepted shapes.
            ValueError: the total is negative.
        """
        if isinstance(value, LoadResult):
            return value
        if isinstance(value, Mapping):
            try:
                return cls(items=value["items"], total=value["total"])
            except KeyError as e:
                raise TypeError(f"Load result is missing {e}") from e
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(items=value[0], total=value[1])
        raise TypeError(
            f"Expected a load result, got {value.__class__.__name__}"
        )


class Loader(Protocol):
    """The capability that fetches a range of items.

    It is called synchronously with the offset and the maximum number of
    items and returns an awaitable (or a `concurrent.futures.Future`) that
    resolves to something `LoadResult.coerce` accepts. It must be safe to
    call again for a disjoint range before a previous call resolved.
    """

    def __call__(self, offset: int, limit: int) -> Awaitable[Any]: ...


@define
class ListLoader(Generic[T]):
    """A loader backed by an in-memory list.

    The slice is taken when the loader is called, so changes to `source`
    made after a call are only seen by later calls.

    Attributes:
        source: The items that are served.
        delay: Seconds to wait before resolving each call.
        calls: The (offset, limit) pairs of every call.
        fail_next: If set, the next call fails with this exception.
    """

    source: List[T] = field(factory=list)
    delay: float = field(default=0.0)
    calls: List[Tuple[int, int]] = field(factory=list)
    fail_next: Optional[Exception] = field(default=None)

    @classmethod
    def of_range(cls, total: int, delay: float = 0.0) -> "ListLoader[int]":
        """Create a loader that serves the integers [0, total)."""
        return cls(source=list(range(total)), delay=delay)  # type: ignore

    def __call__(self, offset: int, limit: int) -> Awaitable[LoadResult[T]]:
        self.calls.append((offset, limit))
        logger.debug("Serving %d item(s) from %d", limit, offset)
        error, self.fail_next = self.fail_next, None
        result = LoadResult(
            items=self.source[offset : offset + limit],
            total=len(self.source),
        )
        return self._resolve(result, error)

    async def _resolve(
        self, result: LoadResult[T], error: Optional[Exception]
    ) -> LoadResult[T]:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if error is not None:
            raise error
        return result

    def append(self, items: Iterable[T]) -> None:
        """Add items at the end of the source."""
        self.source.extend(items)

    def remove_tail(self, count: int) -> None:
        """Remove `count` items from the end of the source."""
        if count > 0:
            del self.source[-count:]
