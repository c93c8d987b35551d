"""testnet launchers package.

Re-exports the launcher ABC and the subprocess implementation.
"""

from testnet.launchers.base import NodeLauncher, wait_or_cancel
from testnet.launchers.subprocess_launcher import SubprocessLauncher

__all__ = [
    "NodeLauncher",
    "SubprocessLauncher",
    "wait_or_cancel",
]
