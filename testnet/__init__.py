"""testnet - Local multi-node test network launcher.

Launches a genesis node, reads the contacts it publishes, then starts the
remaining nodes one at a time with a fail-fast liveness check.
"""

__version__ = "0.1.0"

from testnet.constants import ContactEncoding, LaunchMode, NodeRole, OrchestrationState
from testnet.exceptions import TestnetError
from testnet.join import join_network
from testnet.launch_types import (
    ContactRegistry,
    LaunchPlan,
    LaunchReport,
    NodeIndexRange,
    NodeSpec,
    RunningProcessHandle,
    SocketAddress,
)
from testnet.orchestrator import LaunchOrchestrator

__all__ = [
    "__version__",
    "ContactEncoding",
    "LaunchMode",
    "NodeRole",
    "OrchestrationState",
    "TestnetError",
    # Types
    "ContactRegistry",
    "LaunchPlan",
    "LaunchReport",
    "NodeIndexRange",
    "NodeSpec",
    "RunningProcessHandle",
    "SocketAddress",
    # Operations
    "LaunchOrchestrator",
    "join_network",
]
