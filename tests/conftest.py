"""Pytest configuration and fixtures for testnet tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from testnet.constants import ContactEncoding
from testnet.launch_types import ContactRegistry, LaunchPlan, SocketAddress
from tests.mocks import MockNodeLauncher

GENESIS_ADDRESS = SocketAddress("127.0.0.1", 12000)


@pytest.fixture
def nodes_dir(tmp_path: Path) -> Path:
    """Root directory for node output directories (not created)."""
    return tmp_path / "nodes"


@pytest.fixture
def registry_path(tmp_path: Path) -> Path:
    """Location of the genesis contact registry file (not created)."""
    return tmp_path / "node_connection_info.config"


@pytest.fixture
def plan(tmp_path: Path, nodes_dir: Path, registry_path: Path) -> LaunchPlan:
    """Launch plan with no delays, pointing at temporary paths.

    Returns:
        LaunchPlan instance
    """
    return LaunchPlan(
        binary_path=tmp_path / "bin" / "sn_node",
        nodes_root_dir=nodes_dir,
        registry_path=registry_path,
        base_env=(("RUST_LOG", "safe_network=debug"),),
        base_args=("-vv", "--idle-timeout-msec", "5500", "--keep-alive-interval-msec", "4000"),
        interval=0,
        liveness_timeout=0,
    )


@pytest.fixture
def genesis_registry() -> ContactRegistry:
    """Contacts the genesis node publishes."""
    return ContactRegistry(addresses=frozenset({GENESIS_ADDRESS}))


@pytest.fixture
def mock_launcher(registry_path: Path, genesis_registry: ContactRegistry) -> MockNodeLauncher:
    """Mock launcher whose genesis node publishes ``genesis_registry``."""
    return MockNodeLauncher().publish_on_genesis(registry_path, genesis_registry, ContactEncoding.ADDRESSES)


@pytest.fixture
def make_node_dirs(nodes_dir: Path) -> Callable[..., list[Path]]:
    """Create node directories for the given indices (1 is the genesis node).

    Returns:
        Factory taking node indices and returning the created paths
    """

    def _make(*indices: int) -> list[Path]:
        created = []
        for index in indices:
            name = "sn-node-genesis" if index == 1 else f"sn-node-{index}"
            path = nodes_dir / name
            path.mkdir(parents=True, exist_ok=True)
            created.append(path)
        return created

    return _make
