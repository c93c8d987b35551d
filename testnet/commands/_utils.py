"""Shared utilities for testnet CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
from rich.console import Console

from testnet.config import TestnetConfig
from testnet.exceptions import NodeLaunchError, TestnetError
from testnet.launch_types import SocketAddress
from testnet.logging import setup_logging

error_console = Console(stderr=True)


class SocketAddressType(click.ParamType):
    """Click parameter type for ``ip:port`` values."""

    name = "address"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> SocketAddress:
        if isinstance(value, SocketAddress):
            return value
        try:
            return SocketAddress.parse(str(value))
        except ValueError as e:
            self.fail(str(e), param, ctx)


SOCKET_ADDRESS = SocketAddressType()


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict):
            merged[key] = _merge(merged.get(key, {}), value)
        elif value is not None:
            merged[key] = value
    return merged


def load_config(config_path: str | None, overrides: dict[str, Any]) -> TestnetConfig:
    """Load the config file and apply CLI overrides.

    Override values that are None are left to the file (or the defaults).

    Args:
        config_path: Explicit config file, or None for .testnet/config.yaml
        overrides: Nested mapping shaped like TestnetConfig.to_dict()

    Returns:
        Effective configuration
    """
    config = TestnetConfig.load(Path(config_path) if config_path else None)
    return TestnetConfig.from_dict(_merge(config.to_dict(), overrides))


def configure_logging(config: TestnetConfig, verbose: bool) -> None:
    """Set up console logging, plus JSON file logs if a directory is configured."""
    level = "debug" if verbose else config.logging.level
    setup_logging(
        level=level,
        log_dir=config.logging.directory,
        json_output=config.logging.json_output,
        console_output=True,
    )


def report_failure(error: TestnetError) -> None:
    """Print a failed run's diagnostic to stderr."""
    if isinstance(error, NodeLaunchError):
        node = f"{error.role} node"
        if error.node_index is not None:
            node += f" #{error.node_index}"
        error_console.print(f"\n[red]Error:[/red] {node} failed to start")
        error_console.print(f"  Cause: {error.cause}", markup=False)
    else:
        error_console.print(f"\n[red]Error:[/red] {type(error).__name__}")
        error_console.print(f"  {error}", markup=False)
    error_console.print("[yellow]Nodes already started were left running.[/yellow]")
