"""One-shot join: start a single node against an explicit contact list."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from testnet.constants import NodeRole
from testnet.exceptions import LaunchCancelledError, LaunchError, NodeLaunchError
from testnet.launch_types import LaunchPlan, NodeSpec, RunningProcessHandle, SocketAddress
from testnet.launchers.base import NodeLauncher
from testnet.logging import clear_node_context, get_logger, set_node_context
from testnet.node_args import compose_node_command, dedupe_contacts

logger = get_logger("join")


def join_network(
    plan: LaunchPlan,
    launcher: NodeLauncher,
    contacts: Iterable[SocketAddress],
    working_dir: Path | None = None,
    extra_args: Sequence[str] = (),
) -> RunningProcessHandle | None:
    """Start one node that bootstraps from ``contacts``.

    An empty contact list means there is nothing to join: no process is
    started and None is returned.

    Args:
        plan: Shared launch settings
        launcher: Launcher for the single spawn
        contacts: Bootstrap addresses; duplicates are collapsed
        working_dir: Node data/log directory, defaults to the plan's nodes root
        extra_args: Join-only node flags (see node_args.join_extra_args)

    Returns:
        Handle of the started node, or None when there were no contacts

    Raises:
        NodeLaunchError: The node failed to spawn or exited early
        LaunchCancelledError: Cancelled during the liveness wait
    """
    unique_contacts = dedupe_contacts(contacts)
    if not unique_contacts:
        logger.info("No contact nodes provided, nothing to join")
        return None

    if plan.check_version:
        launcher.probe_version(plan.binary_path)

    node_dir = working_dir or plan.nodes_root_dir
    spec = NodeSpec(
        role=NodeRole.EXTERNAL_JOIN,
        working_dir=node_dir,
        extra_args=tuple(extra_args),
        contacts=unique_contacts,
    )
    logger.debug(f"Node to be started with contact(s): {[str(c) for c in unique_contacts]}")

    set_node_context(role=spec.role.value)
    try:
        command = compose_node_command(plan, spec)
        handle = launcher.launch_command(command)
    except LaunchCancelledError:
        raise
    except LaunchError as e:
        raise NodeLaunchError(None, spec.role.value, e) from e
    finally:
        clear_node_context()

    logger.info(f"Launched joining node (PID {handle.pid})")
    logger.debug(f"Node logs are being stored at: {command.working_dir}")
    return RunningProcessHandle(pid=handle.pid, working_dir=handle.working_dir, label=spec.label)
