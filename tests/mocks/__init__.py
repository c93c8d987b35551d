"""Mock objects for testnet testing."""

from tests.mocks.mock_launcher import LaunchAttempt, MockNodeLauncher, index_for_dir

__all__ = [
    "LaunchAttempt",
    "MockNodeLauncher",
    "index_for_dir",
]
