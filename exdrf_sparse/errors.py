from typing import Optional


class SparseArrayError(Exception):
    """Base class for the errors raised by this package."""


class InvalidConfiguration(SparseArrayError, ValueError):
    """The configuration of a sparse array is missing or invalid.

    Attributes:
        option: The name of the offending option.
    """

    option: str

    def __init__(self, option: str, message: str) -> None:
        super().__init__(f"Invalid `{option}`: {message}")
        self.option = option


class LoadFailure(SparseArrayError):
    """A load request could not be completed.

    The original exception, if any, is available as `__cause__`.

    Attributes:
        start: The first index of the failed request.
        count: The number of items that were requested.
    """

    start: int
    count: int

    def __init__(
        self, start: int, count: int, message: Optional[str] = None
    ) -> None:
        if message is None:
            message = f"Failed to load {count} item(s) starting at {start}"
        super().__init__(message)
        self.start = start
        self.count = count
