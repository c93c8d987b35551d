"""SubprocessLauncher for starting nodes as detached local processes.

Uses subprocess.Popen with stdout discarded and stderr inherited, so node
startup failures show up on the launcher's own error stream.
"""

from __future__ import annotations

import os
import subprocess
import sys
import threading
from collections.abc import Sequence
from pathlib import Path

from testnet.constants import NODE_LIVENESS_TIMEOUT_SECONDS
from testnet.exceptions import ExitedEarlyError, SpawnFailedError
from testnet.launch_types import RunningProcessHandle
from testnet.launchers.base import NodeLauncher, wait_or_cancel
from testnet.logging import get_logger

logger = get_logger("launcher")

VERSION_PROBE_TIMEOUT_SECONDS = 30


def _detach_kwargs() -> dict[str, object]:
    """Popen options that keep a node alive when the launcher is interrupted."""
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


class SubprocessLauncher(NodeLauncher):
    """Launch nodes as local subprocesses.

    The launcher is fire-and-forget past the liveness window. Popen objects
    are retained only so they are not finalized while the node runs.
    """

    def __init__(
        self,
        liveness_timeout: float = NODE_LIVENESS_TIMEOUT_SECONDS,
        cancel_event: threading.Event | None = None,
    ) -> None:
        super().__init__(liveness_timeout, cancel_event)
        self._processes: dict[int, subprocess.Popen[bytes]] = {}

    def launch(
        self,
        binary_path: str | Path,
        working_dir: Path,
        args: Sequence[str],
        env: Sequence[tuple[str, str]] = (),
    ) -> RunningProcessHandle:
        """Spawn a node subprocess and check it is still alive after the liveness window.

        Args:
            binary_path: Program to execute
            working_dir: Process working directory, created if missing
            args: Command-line arguments
            env: Environment overrides, applied in order

        Returns:
            Handle of the running process
        """
        program = str(binary_path)
        cmd = [program, *args]
        working_dir = Path(working_dir).resolve()

        node_env = os.environ.copy()
        node_env.update(dict(env))

        logger.debug(f"Running '{program}' with args {list(args)} in {working_dir}")

        try:
            working_dir.mkdir(parents=True, exist_ok=True)
            process = subprocess.Popen(
                cmd,
                cwd=working_dir,
                env=node_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=None,
                **_detach_kwargs(),  # type: ignore[arg-type]
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Failed to start '{program}': {e}")
            raise SpawnFailedError(
                f"Failed to start '{program}' with args {list(args)}: {e}",
                binary_path=program,
            ) from e

        self._processes[process.pid] = process
        logger.debug(f"Spawned '{program}' with PID {process.pid}")

        # Fail fast if the node dies right away (bad args, missing deps)
        wait_or_cancel(self.cancel_event, self.liveness_timeout, f"PID {process.pid} liveness check")

        exit_code = process.poll()
        if exit_code is not None:
            self._processes.pop(process.pid, None)
            logger.error(f"'{program}' (PID {process.pid}) exited early with status {exit_code}")
            raise ExitedEarlyError(
                f"Node exited early (status: {exit_code}) when started as '{program}' with args {list(args)}",
                binary_path=program,
                exit_code=exit_code,
            )

        return RunningProcessHandle(pid=process.pid, working_dir=working_dir)

    def probe_version(self, binary_path: str | Path) -> str:
        """Run ``<binary> -V`` and return its trimmed output.

        Args:
            binary_path: Node binary

        Returns:
            Version string reported by the binary
        """
        program = str(binary_path)
        try:
            result = subprocess.run(
                [program, "-V"],
                capture_output=True,
                text=True,
                timeout=VERSION_PROBE_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise SpawnFailedError(
                f"Failed to run '{program}' with args ['-V']: {e}", binary_path=program
            ) from e

        if result.returncode != 0:
            raise SpawnFailedError(
                f"Failed to run '{program}' with args ['-V']: process exited with "
                f"non-zero status (status: {result.returncode}, stderr: {result.stderr.strip()})",
                binary_path=program,
            )

        version = result.stdout.strip()
        logger.debug(f"Using node binary {version} from {program}")
        return version
