import pytest

from fakes import FakeNode, instant_retry


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def retry_policy():
    policy, _ = instant_retry()
    return policy


@pytest.fixture()
def linear_chain():
    """200 blocks, 3 seconds apart, starting at 1_700_000_000."""
    return [1_700_000_000 + 3 * n for n in range(200)]


@pytest.fixture()
def node(linear_chain):
    return FakeNode(linear_chain)
