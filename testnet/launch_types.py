"""testnet launch data types.

Pure data types shared by the composer, launcher, registry reader and
orchestrator: the immutable LaunchPlan, per-node NodeSpec, socket addresses,
the contact registry, process handles and the launch report.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from testnet.constants import (
    DEFAULT_INTERVAL_SECONDS,
    NODE_LIVENESS_TIMEOUT_SECONDS,
    ContactArgStyle,
    ContactEncoding,
    LaunchMode,
    NodeRole,
    OrchestrationState,
)

__all__ = [
    "SocketAddress",
    "ContactRegistry",
    "LaunchPlan",
    "NodeSpec",
    "NodeCommand",
    "NodeIndexRange",
    "RunningProcessHandle",
    "LaunchReport",
]

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


@dataclass(frozen=True, order=True)
class SocketAddress:
    """An IP socket endpoint, rendered as ``ip:port`` or ``[ip]:port``."""

    # Sort key first so IPv4 and IPv6 hosts order without comparing across families
    _sort_key: tuple[int, int, int] = field(init=False, repr=False, compare=True)
    host: IPAddress = field(compare=False)
    port: int = field(compare=False)

    def __init__(self, host: IPAddress | str, port: int) -> None:
        parsed = ipaddress.ip_address(host) if isinstance(host, str) else host
        if not 0 <= port <= 65535:
            raise ValueError(f"Port out of range: {port}")
        object.__setattr__(self, "host", parsed)
        object.__setattr__(self, "port", port)
        object.__setattr__(self, "_sort_key", (parsed.version, int(parsed), port))

    @classmethod
    def parse(cls, value: str) -> SocketAddress:
        """Parse ``a.b.c.d:port`` or ``[v6]:port``.

        Raises:
            ValueError: If the value is not a socket address
        """
        text = value.strip()
        if text.startswith("["):
            host, sep, port = text[1:].partition("]:")
            if not sep:
                raise ValueError(f"Invalid socket address: {value!r}")
        else:
            host, sep, port = text.rpartition(":")
            if not sep or ":" in host:
                raise ValueError(f"Invalid socket address: {value!r}")
        if not port.isdigit():
            raise ValueError(f"Invalid port in socket address: {value!r}")
        return cls(host, int(port))

    def __str__(self) -> str:
        if self.host.version == 6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class ContactRegistry:
    """Bootstrap contacts published by the genesis node."""

    addresses: frozenset[SocketAddress]
    network_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.addresses

    def sorted_addresses(self) -> tuple[SocketAddress, ...]:
        """Addresses in a stable order, for deterministic argument vectors."""
        return tuple(sorted(self.addresses))


@dataclass(frozen=True)
class LaunchPlan:
    """Settings shared read-only by every spawn of one orchestration run."""

    binary_path: Path
    nodes_root_dir: Path
    registry_path: Path
    base_env: tuple[tuple[str, str], ...] = ()
    base_args: tuple[str, ...] = ()
    interval: float = DEFAULT_INTERVAL_SECONDS
    genesis_ip: str | None = None
    contact_encoding: ContactEncoding = ContactEncoding.ADDRESSES
    contact_arg_style: ContactArgStyle = ContactArgStyle.INLINE
    launch_mode: LaunchMode = LaunchMode.NORMAL
    liveness_timeout: float = NODE_LIVENESS_TIMEOUT_SECONDS
    check_version: bool = True


@dataclass(frozen=True)
class NodeSpec:
    """What to launch for a single node."""

    role: NodeRole
    working_dir: Path
    index: int | None = None
    extra_args: tuple[str, ...] = ()
    contacts: tuple[SocketAddress, ...] | None = None
    contacts_file: Path | None = None
    launch_mode: LaunchMode | None = None

    @property
    def label(self) -> str:
        if self.role is NodeRole.GENESIS:
            return "genesis node (#1)" if self.index is None else f"genesis node (#{self.index})"
        if self.index is None:
            return f"{self.role.value} node"
        return f"node #{self.index}"


@dataclass(frozen=True)
class NodeCommand:
    """Fully composed process invocation for one node."""

    program: str
    args: tuple[str, ...]
    env: tuple[tuple[str, str], ...]
    working_dir: Path


@dataclass(frozen=True)
class NodeIndexRange:
    """Inclusive range of node indices to dispatch."""

    start: int
    stop: int

    @classmethod
    def compute(cls, highest_existing: int, requested_count: int) -> NodeIndexRange:
        """Range starting strictly after the highest existing index.

        Args:
            highest_existing: Highest node index already present (1 = genesis only)
            requested_count: Number of nodes to add

        Returns:
            NodeIndexRange covering exactly requested_count indices
        """
        if requested_count < 1:
            raise ValueError(f"requested_count must be positive, got {requested_count}")
        if highest_existing < 0:
            raise ValueError(f"highest_existing must not be negative, got {highest_existing}")
        return cls(start=highest_existing + 1, stop=highest_existing + requested_count)

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.stop + 1))

    def __len__(self) -> int:
        return max(0, self.stop - self.start + 1)


@dataclass(frozen=True)
class RunningProcessHandle:
    """A node process that passed its liveness check."""

    pid: int
    working_dir: Path
    label: str = ""


@dataclass
class LaunchReport:
    """Outcome of one orchestration run."""

    state: OrchestrationState = OrchestrationState.INIT
    genesis: RunningProcessHandle | None = None
    nodes: list[RunningProcessHandle] = field(default_factory=list)
    index_range: NodeIndexRange | None = None
    contacts: ContactRegistry | None = None
    history: list[OrchestrationState] = field(default_factory=lambda: [OrchestrationState.INIT])

    @property
    def launched_count(self) -> int:
        """Processes spawned during this run, genesis included."""
        return len(self.nodes) + (1 if self.genesis else 0)
