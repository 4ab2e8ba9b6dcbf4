import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog():
    # The CLI configures structlog against the runner's stderr; undo it.
    yield
    structlog.reset_defaults()
