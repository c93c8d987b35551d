"""Argument composition for node processes.

Turns a LaunchPlan plus a NodeSpec into the exact NodeCommand handed to the
launcher. Everything here is pure: no filesystem, process or environment
access, so the same inputs always compose the same command.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from testnet.constants import (
    DEFAULT_GENESIS_IP,
    DEFAULT_LOG_FILTER,
    FLAMEGRAPH_DIR_NAME,
    FLAMEGRAPH_PROGRAM,
    GENESIS_DIR_NAME,
    LOG_FILTER_ENV,
    MIN_NODE_VERBOSITY,
    NODE_DIR_PREFIX,
    ContactArgStyle,
    LaunchMode,
    NodeRole,
)
from testnet.exceptions import EmptyContactListError, ValidationError
from testnet.json_utils import dumps as json_dumps
from testnet.launch_types import LaunchPlan, NodeCommand, NodeSpec, SocketAddress

__all__ = [
    "NodeArgs",
    "compose_node_command",
    "contacts_argument",
    "dedupe_contacts",
    "join_extra_args",
    "launch_tuning_args",
    "node_dir_name",
    "node_working_dir",
    "resolve_log_filter",
    "verbosity_flag",
]


class NodeArgs:
    """Ordered builder of ``(flag, value)`` pairs.

    A pair with a ``None`` value renders as a bare flag; a pair with a ``None``
    flag renders as a positional token.
    """

    def __init__(self, pairs: Iterable[tuple[str | None, str | None]] = ()) -> None:
        self._pairs: list[tuple[str | None, str | None]] = list(pairs)

    def add_flag(self, flag: str) -> NodeArgs:
        self._pairs.append((flag, None))
        return self

    def add_option(self, flag: str, value: object) -> NodeArgs:
        self._pairs.append((flag, str(value)))
        return self

    def add_positional(self, value: object) -> NodeArgs:
        self._pairs.append((None, str(value)))
        return self

    def extend_tokens(self, tokens: Iterable[str]) -> NodeArgs:
        """Append pre-rendered tokens as positionals, keeping their order."""
        for token in tokens:
            self.add_positional(token)
        return self

    def to_tokens(self) -> tuple[str, ...]:
        tokens: list[str] = []
        for flag, value in self._pairs:
            if flag is not None:
                tokens.append(flag)
            if value is not None:
                tokens.append(value)
        return tuple(tokens)

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"NodeArgs({list(self.to_tokens())!r})"


def verbosity_flag(extra_verbosity: int = 0) -> str:
    """Node verbosity flag, never below INFO (``-vv``).

    Args:
        extra_verbosity: Levels to add on top of INFO

    Returns:
        Flag such as ``-vv`` or ``-vvvv``
    """
    if extra_verbosity < 0:
        raise ValidationError("Verbosity cannot be negative", field="verbosity")
    return "-" + "v" * (MIN_NODE_VERBOSITY + extra_verbosity)


def resolve_log_filter(explicit: str | None, environ: Mapping[str, str]) -> str:
    """Pick the node log filter: explicit value, then RUST_LOG, then the default."""
    if explicit:
        return explicit
    return environ.get(LOG_FILTER_ENV) or DEFAULT_LOG_FILTER


def launch_tuning_args(idle_timeout_msec: int, keep_alive_interval_msec: int) -> tuple[str, ...]:
    """Network tuning flags passed to every node of a launch."""
    return (
        NodeArgs()
        .add_option("--idle-timeout-msec", idle_timeout_msec)
        .add_option("--keep-alive-interval-msec", keep_alive_interval_msec)
        .to_tokens()
    )


def join_extra_args(
    max_capacity: int | None = None,
    local_addr: SocketAddress | None = None,
    public_addr: SocketAddress | None = None,
    clear_data: bool = False,
) -> tuple[str, ...]:
    """Per-node flags accepted by a one-shot joining node."""
    args = NodeArgs()
    if max_capacity is not None:
        args.add_option("--max-capacity", max_capacity)
    if local_addr is not None:
        args.add_option("--local-addr", local_addr)
    if public_addr is not None:
        args.add_option("--public-addr", public_addr)
    if clear_data:
        args.add_flag("--clear-data")
    return args.to_tokens()


def node_dir_name(role: NodeRole, index: int | None = None) -> str:
    """Directory name of a node under the nodes root."""
    if role is NodeRole.GENESIS:
        return GENESIS_DIR_NAME
    if index is None:
        raise ValidationError(f"A {role.value} node needs an index", field="index")
    return f"{NODE_DIR_PREFIX}-{index}"


def node_working_dir(plan: LaunchPlan, role: NodeRole, index: int | None = None) -> Path:
    """Working (data and log) directory for a node of this plan."""
    return plan.nodes_root_dir / node_dir_name(role, index)


def dedupe_contacts(contacts: Iterable[SocketAddress]) -> tuple[SocketAddress, ...]:
    """Drop repeated addresses, keeping first-seen order."""
    return tuple(dict.fromkeys(contacts))


def contacts_argument(contacts: Iterable[SocketAddress]) -> str:
    """Inline JSON encoding of a contact list, e.g. ``["127.0.0.1:12000"]``."""
    return json_dumps([str(contact) for contact in dedupe_contacts(contacts)])


def _effective_mode(plan: LaunchPlan, spec: NodeSpec) -> LaunchMode:
    return spec.launch_mode or plan.launch_mode


def _flamegraph_dir(plan: LaunchPlan, working_dir: Path) -> Path:
    return plan.nodes_root_dir / FLAMEGRAPH_DIR_NAME / working_dir.name


def compose_node_command(plan: LaunchPlan, spec: NodeSpec) -> NodeCommand:
    """Compose the command line and environment for one node.

    Args:
        plan: Shared launch settings
        spec: Node to launch

    Returns:
        NodeCommand ready for the launcher

    Raises:
        EmptyContactListError: A joining node has no contacts to bootstrap from
    """
    mode = _effective_mode(plan, spec)
    working_dir = spec.working_dir
    if mode is LaunchMode.FLAMEGRAPH:
        working_dir = _flamegraph_dir(plan, working_dir)

    args = NodeArgs().extend_tokens(plan.base_args).extend_tokens(spec.extra_args)
    args.add_option("--root-dir", working_dir)
    args.add_option("--log-dir", working_dir)

    if spec.role is NodeRole.GENESIS:
        ip = plan.genesis_ip or DEFAULT_GENESIS_IP
        args.add_option("--first", f"{ip}:0")
    elif spec.contacts_file is not None and plan.contact_arg_style is ContactArgStyle.FILE:
        args.add_option("--network-contacts-file", spec.contacts_file)
    elif spec.contacts:
        args.add_option("--hard-coded-contacts", contacts_argument(spec.contacts))
    else:
        raise EmptyContactListError(f"No bootstrap contacts for {spec.label}")

    program = str(plan.binary_path)
    tokens = args.to_tokens()
    if mode is LaunchMode.FLAMEGRAPH:
        tokens = (
            NodeArgs()
            .add_option("--output", working_dir.with_suffix(".svg"))
            .add_positional("--")
            .add_positional(program)
            .to_tokens()
            + tokens
        )
        program = FLAMEGRAPH_PROGRAM

    return NodeCommand(
        program=program,
        args=tokens,
        env=plan.base_env,
        working_dir=working_dir,
    )
