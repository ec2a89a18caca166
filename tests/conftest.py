import pytest


@pytest.fixture
def anyio_backend():
    # The reader is built on asyncio tasks/events (see DESIGN.md).
    return "asyncio"
