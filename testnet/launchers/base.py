"""NodeLauncher abstract base class.

Defines the interface for starting one node process and confirming it
survived its first seconds. SubprocessLauncher lives in a sibling module.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from testnet.constants import NODE_LIVENESS_TIMEOUT_SECONDS
from testnet.exceptions import LaunchCancelledError
from testnet.launch_types import NodeCommand, RunningProcessHandle
from testnet.logging import get_logger

logger = get_logger("launcher")


def wait_or_cancel(cancel_event: threading.Event, seconds: float, what: str) -> None:
    """Block for ``seconds`` unless cancelled first.

    Args:
        cancel_event: Shared cancellation signal
        seconds: Delay length
        what: Description of the wait, used in the error message

    Raises:
        LaunchCancelledError: If the event is set before or during the wait
    """
    if seconds > 0:
        logger.debug(f"Waiting {seconds:g}s for {what}")
    if cancel_event.is_set() or (seconds > 0 and cancel_event.wait(seconds)):
        raise LaunchCancelledError(f"Cancelled while waiting for {what}")


class NodeLauncher(ABC):
    """Abstract base class for node launchers.

    A launcher starts a process, holds on to it only for the liveness
    window, and hands back a RunningProcessHandle. It never supervises,
    restarts or stops the process afterwards.
    """

    def __init__(
        self,
        liveness_timeout: float = NODE_LIVENESS_TIMEOUT_SECONDS,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize launcher.

        Args:
            liveness_timeout: Seconds a new process must stay up
            cancel_event: Shared cancellation signal for the liveness wait
        """
        self.liveness_timeout = liveness_timeout
        self.cancel_event = cancel_event or threading.Event()

    @abstractmethod
    def launch(
        self,
        binary_path: str | Path,
        working_dir: Path,
        args: Sequence[str],
        env: Sequence[tuple[str, str]] = (),
    ) -> RunningProcessHandle:
        """Start a node process and run the liveness check.

        Args:
            binary_path: Program to execute
            working_dir: Process working directory, created if missing
            args: Command-line arguments
            env: Environment overrides, applied in order

        Returns:
            Handle of the running process

        Raises:
            SpawnFailedError: The process could not be created
            ExitedEarlyError: The process exited within the liveness window
            LaunchCancelledError: Cancelled during the liveness wait
        """

    @abstractmethod
    def probe_version(self, binary_path: str | Path) -> str:
        """Return the version string reported by the node binary.

        Raises:
            SpawnFailedError: The binary cannot be run or reports an error
        """

    def launch_command(self, command: NodeCommand) -> RunningProcessHandle:
        """Launch a composed NodeCommand."""
        return self.launch(command.program, command.working_dir, command.args, command.env)
