"""Shared fixtures for unit tests."""

import pytest

from testnet.logging import clear_node_context


@pytest.fixture(autouse=True)
def _reset_node_context():
    """Keep node log context from leaking between tests."""
    clear_node_context()
    yield
    clear_node_context()
