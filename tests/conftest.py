import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog():
    # CliRunner swaps sys.stderr for a temporary stream; drop any logger
    # configuration bound to it so later tests do not write to a closed file.
    yield
    structlog.reset_defaults()
