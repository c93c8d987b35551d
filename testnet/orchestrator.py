"""Launch orchestrator: genesis, contact handoff, then sequential node dispatch.

State machine::

    INIT -> GENESIS_PENDING | GENESIS_SKIPPED -> AWAITING_CONTACTS
         -> DISPATCHING -> DONE

FAILED is reachable from every state. Nodes that were already started keep
running after a failure; the orchestrator only stops issuing new launches.
"""

from __future__ import annotations

import re
from pathlib import Path

from testnet.constants import (
    FLAMEGRAPH_DIR_NAME,
    GENESIS_DIR_NAME,
    GENESIS_INDEX,
    NODE_DIR_PREFIX,
    ContactArgStyle,
    NodeRole,
    OrchestrationState,
)
from testnet.contacts import read_contact_registry
from testnet.exceptions import (
    EmptyContactListError,
    LaunchCancelledError,
    LaunchError,
    NodeLaunchError,
    NoExistingNetworkError,
    OrchestrationError,
    TestnetError,
    ValidationError,
)
from testnet.launch_types import (
    ContactRegistry,
    LaunchPlan,
    LaunchReport,
    NodeIndexRange,
    NodeSpec,
    RunningProcessHandle,
)
from testnet.launchers.base import NodeLauncher, wait_or_cancel
from testnet.logging import clear_node_context, get_logger, set_node_context
from testnet.node_args import compose_node_command, node_working_dir

logger = get_logger("orchestrator")

_NODE_DIR_RE = re.compile(rf"^{re.escape(NODE_DIR_PREFIX)}-(\d+)$")

# Allowed state transitions, FAILED excluded (always allowed from non-terminal states)
_TRANSITIONS: dict[OrchestrationState, set[OrchestrationState]] = {
    OrchestrationState.INIT: {OrchestrationState.GENESIS_PENDING, OrchestrationState.GENESIS_SKIPPED},
    OrchestrationState.GENESIS_PENDING: {OrchestrationState.AWAITING_CONTACTS},
    OrchestrationState.GENESIS_SKIPPED: {OrchestrationState.AWAITING_CONTACTS},
    OrchestrationState.AWAITING_CONTACTS: {OrchestrationState.DISPATCHING},
    OrchestrationState.DISPATCHING: {OrchestrationState.DONE},
    OrchestrationState.DONE: set(),
    OrchestrationState.FAILED: set(),
}


def scan_existing_nodes(nodes_root_dir: Path) -> list[int]:
    """Find the indices of node directories already present.

    ``sn-node-genesis`` counts as index 1 and ``sn-node-<i>`` as ``i``. The
    flamegraph relocation directory is scanned as well; anything else is
    ignored.

    Args:
        nodes_root_dir: Directory holding the node directories

    Returns:
        Sorted list of distinct node indices (empty if none or no directory)
    """
    indices: set[int] = set()
    for root in (nodes_root_dir, nodes_root_dir / FLAMEGRAPH_DIR_NAME):
        if not root.is_dir():
            continue
        for entry in root.iterdir():
            if not entry.is_dir():
                continue
            if entry.name == GENESIS_DIR_NAME:
                indices.add(GENESIS_INDEX)
                continue
            match = _NODE_DIR_RE.match(entry.name)
            if match:
                indices.add(int(match.group(1)))
    return sorted(indices)


class LaunchOrchestrator:
    """Drive a fresh or extending launch of a local test network.

    Example:
        launcher = SubprocessLauncher(cancel_event=event)
        orchestrator = LaunchOrchestrator(plan, launcher)
        report = orchestrator.run(requested_count=10)
    """

    def __init__(self, plan: LaunchPlan, launcher: NodeLauncher) -> None:
        """Initialize orchestrator.

        Args:
            plan: Immutable launch settings
            launcher: Launcher used for every spawn; its cancel event also
                interrupts the waits between nodes
        """
        self.plan = plan
        self.launcher = launcher
        self.cancel_event = launcher.cancel_event
        self.report = LaunchReport()

    @property
    def state(self) -> OrchestrationState:
        return self.report.state

    @property
    def history(self) -> list[OrchestrationState]:
        return list(self.report.history)

    def cancel(self) -> None:
        """Abort the run at its next wait."""
        logger.info("Cancellation requested")
        self.cancel_event.set()

    def run(self, requested_count: int, extend: bool = False) -> LaunchReport:
        """Launch ``requested_count`` nodes, plus a genesis node unless extending.

        Args:
            requested_count: Number of non-genesis nodes to launch
            extend: Add nodes to the network already under the nodes directory

        Returns:
            LaunchReport in state DONE

        Raises:
            ValidationError: requested_count is not positive
            NoExistingNetworkError: Extending with no node directories present
            RegistryUnavailableError: Contact registry missing or malformed
            EmptyContactListError: Contact registry has no addresses
            NodeLaunchError: A node failed to spawn or exited early
            LaunchCancelledError: The run was cancelled
        """
        if self.report.state is not OrchestrationState.INIT:
            raise OrchestrationError("An orchestrator can only run once", state=self.state.value)

        try:
            highest_existing = self._init(requested_count, extend)

            if extend:
                self._transition(OrchestrationState.GENESIS_SKIPPED)
                logger.info(f"Adding {requested_count} node(s) to existing network")
            else:
                self._transition(OrchestrationState.GENESIS_PENDING)
                self.report.genesis = self._launch_genesis()
                highest_existing = GENESIS_INDEX

            self._transition(OrchestrationState.AWAITING_CONTACTS)
            contacts = self._read_contacts()
            self.report.contacts = contacts

            index_range = NodeIndexRange.compute(highest_existing, requested_count)
            self.report.index_range = index_range

            self._transition(OrchestrationState.DISPATCHING)
            for index in index_range:
                handle = self._launch_node(index, contacts, extend)
                self.report.nodes.append(handle)

            self._transition(OrchestrationState.DONE)
        except TestnetError as e:
            self._fail(e)
            raise

        logger.info(f"Done! {self.report.launched_count} node(s) launched")
        return self.report

    def _init(self, requested_count: int, extend: bool) -> int:
        if requested_count < 1:
            raise ValidationError(
                f"Number of nodes must be greater than 0, got {requested_count}",
                field="requested_count",
            )

        existing = scan_existing_nodes(self.plan.nodes_root_dir)
        logger.info(f"{len(existing)} existing nodes found")

        # Checked before the version probe so nothing is spawned
        if extend and not existing:
            raise NoExistingNetworkError(
                "A genesis node could not be found.", nodes_dir=str(self.plan.nodes_root_dir)
            )
        if not extend and existing:
            logger.warning(
                f"Nodes directory {self.plan.nodes_root_dir} already holds node directories; "
                "they will be reused"
            )

        if self.plan.check_version:
            self.launcher.probe_version(self.plan.binary_path)

        logger.debug(f"Common node args for launching the network: {list(self.plan.base_args)}")
        return existing[-1] if extend else 0

    def _launch_genesis(self) -> RunningProcessHandle:
        spec = NodeSpec(
            role=NodeRole.GENESIS,
            index=GENESIS_INDEX,
            working_dir=node_working_dir(self.plan, NodeRole.GENESIS),
        )
        logger.debug(f"Launching genesis node (#{GENESIS_INDEX})...")
        handle = self._dispatch(spec)
        self._wait_interval("genesis node to publish its contacts")
        return handle

    def _read_contacts(self) -> ContactRegistry:
        registry = read_contact_registry(self.plan.registry_path, self.plan.contact_encoding)
        if registry.is_empty:
            raise EmptyContactListError(
                f"Genesis contact registry at '{self.plan.registry_path}' holds no addresses"
            )
        if registry.network_id:
            logger.info(f"Joining network {registry.network_id}")
        return registry

    def _launch_node(self, index: int, contacts: ContactRegistry, extend: bool) -> RunningProcessHandle:
        contacts_file = None
        if self.plan.contact_arg_style is ContactArgStyle.FILE:
            contacts_file = self.plan.registry_path
        spec = NodeSpec(
            role=NodeRole.JOINING,
            index=index,
            working_dir=node_working_dir(self.plan, NodeRole.JOINING, index),
            contacts=contacts.sorted_addresses(),
            contacts_file=contacts_file,
        )
        logger.debug(f"{'Adding' if extend else 'Launching'} node #{index}...")
        handle = self._dispatch(spec)
        # Bound port and CPU contention between consecutive startups
        self._wait_interval(f"interval after node #{index}")
        return handle

    def _dispatch(self, spec: NodeSpec) -> RunningProcessHandle:
        set_node_context(node_index=spec.index, role=spec.role.value)
        try:
            command = compose_node_command(self.plan, spec)
            logger.debug(f"Node command: {command.program} {list(command.args)}")
            handle = self.launcher.launch_command(command)
        except LaunchCancelledError:
            raise
        except LaunchError as e:
            raise NodeLaunchError(spec.index, spec.role.value, e) from e
        finally:
            clear_node_context()

        logger.info(f"Launched {spec.label} (PID {handle.pid}) in {handle.working_dir}")
        return RunningProcessHandle(pid=handle.pid, working_dir=handle.working_dir, label=spec.label)

    def _wait_interval(self, what: str) -> None:
        wait_or_cancel(self.cancel_event, self.plan.interval, what)

    def _transition(self, new_state: OrchestrationState) -> None:
        current = self.report.state
        if new_state not in _TRANSITIONS[current]:
            raise OrchestrationError(
                f"Invalid transition {current.value} -> {new_state.value}", state=current.value
            )
        logger.debug(f"State {current.value} -> {new_state.value}")
        self.report.state = new_state
        self.report.history.append(new_state)

    def _fail(self, error: TestnetError) -> None:
        if self.report.state.is_terminal:
            return
        logger.error(f"Launch failed in state {self.report.state.value}: {error}")
        self.report.state = OrchestrationState.FAILED
        self.report.history.append(OrchestrationState.FAILED)
