"""testnet CLI commands."""

from testnet.commands.join import join
from testnet.commands.launch import launch

__all__ = [
    "join",
    "launch",
]
