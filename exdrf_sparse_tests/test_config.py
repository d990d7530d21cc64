import pytest

from exdrf_sparse.config import DEFAULT_BATCH_SIZE, SparseArrayConfig
from exdrf_sparse.errors import InvalidConfiguration, SparseArrayError
from exdrf_sparse.loader import ListLoader


def test_valid_config():
    loader = ListLoader()
    config = SparseArrayConfig(batch_size=DEFAULT_BATCH_SIZE, load=loader)
    assert config.batch_size == 8
    assert config.load is loader


@pytest.mark.parametrize("value", [0, -1, None, 1.5, "8", False])
def test_invalid_batch_size(value):
    with pytest.raises(InvalidConfiguration) as exc_info:
        SparseArrayConfig(batch_size=value, load=ListLoader())
    assert exc_info.value.option == "batch_size"
    assert "batch_size" in str(exc_info.value)


@pytest.mark.parametrize("value", [None, 5, "load"])
def test_invalid_load(value):
    with pytest.raises(InvalidConfiguration) as exc_info:
        SparseArrayConfig(batch_size=4, load=value)
    assert exc_info.value.option == "load"


def test_invalid_configuration_is_value_error():
    with pytest.raises(ValueError):
        SparseArrayConfig(batch_size=0, load=ListLoader())
    assert issubclass(InvalidConfiguration, SparseArrayError)


def test_config_is_frozen():
    config = SparseArrayConfig(batch_size=4, load=ListLoader())
    with pytest.raises(AttributeError):
        config.batch_size = 5  # type: ignore
