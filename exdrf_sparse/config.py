from typing import TYPE_CHECKING, Any

from attrs import define, field

from exdrf_sparse.errors import InvalidConfiguration

if TYPE_CHECKING:
    from exdrf_sparse.loader import Loader  # noqa: F401

DEFAULT_BATCH_SIZE = 8

ENV_BATCH_SIZE = "EXDRF_SPARSE_BATCH_SIZE"
ENV_TOTAL = "EXDRF_SPARSE_TOTAL"
ENV_DELAY = "EXDRF_SPARSE_DELAY"


def _check_batch_size(instance: Any, attribute: Any, value: Any) -> None:
    if value is None:
        raise InvalidConfiguration(attribute.name, "a value is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfiguration(
            attribute.name,
            f"expected an integer, got {value.__class__.__name__}",
        )
    if value <= 0:
        raise InvalidConfiguration(
            attribute.name, f"must be positive, got {value}"
        )


def _check_load(instance: Any, attribute: Any, value: Any) -> None:
    if value is None:
        raise InvalidConfiguration(attribute.name, "a loader is required")
    if not callable(value):
        raise InvalidConfiguration(
            attribute.name,
            f"expected a callable, got {value.__class__.__name__}",
        )


@define(frozen=True)
class SparseArrayConfig:
    """The settings of a sparse array.

    Attributes:
        batch_size: The number of items to request at once. The array
            issues a request of this size as soon as it is created and
            each time an unloaded index is read; the request can be
            smaller when the neighbours of the index are already loaded.
        load: The capability that fetches a range of items.
    """

    batch_size: int = field(validator=_check_batch_size)
    load: "Loader" = field(validator=_check_load, repr=False)
