"""testnet join command - attach one node to a known network."""

from __future__ import annotations

import os
import threading

import click
from rich.console import Console

from testnet.commands._utils import SOCKET_ADDRESS, configure_logging, load_config, report_failure
from testnet.constants import NODE_PATH_ENV
from testnet.exceptions import LaunchCancelledError, TestnetError
from testnet.join import join_network
from testnet.launch_types import SocketAddress
from testnet.launchers import SubprocessLauncher
from testnet.node_args import join_extra_args
from testnet.plan import build_launch_plan

console = Console()


@click.command()
@click.option("--node-path", "-p", help=f"Node binary path (the {NODE_PATH_ENV} env var can also be used)")
@click.option("--nodes-verbosity", "-y", count=True, help="Extra node log verbosity on top of INFO")
@click.option("--rust-log", "-l", help="RUST_LOG value to launch the node with")
@click.option("--nodes-dir", "-d", help="Directory where the node's data and logs are written")
@click.option(
    "--hard-coded-contacts", "-h", "contacts",
    multiple=True,
    type=SOCKET_ADDRESS,
    help="Node address to bootstrap from (repeatable)",
)
@click.option("--max-capacity", type=click.IntRange(min=0), help="Max storage to use while running the node")
@click.option("--local-addr", type=SOCKET_ADDRESS, help="Local network address for the node")
@click.option("--public-addr", type=SOCKET_ADDRESS, help="Public address for the node")
@click.option("--clear-data", is_flag=True, help="Clear data directory created by a previous node run")
@click.option("--config", "config_path", help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def join(
    node_path: str | None,
    nodes_verbosity: int,
    rust_log: str | None,
    nodes_dir: str | None,
    contacts: tuple[SocketAddress, ...],
    max_capacity: int | None,
    local_addr: SocketAddress | None,
    public_addr: SocketAddress | None,
    clear_data: bool,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Run a single node that joins a network through the given contacts.

    With no contacts there is nothing to join and no node is started.

    Examples:

        testnet join -h 127.0.0.1:12000

        testnet join -h 10.0.0.5:12000 -h 10.0.0.6:12000 --clear-data
    """
    try:
        config = load_config(
            config_path,
            {
                "node": {
                    "path": node_path,
                    "verbosity": nodes_verbosity or None,
                    "log_filter": rust_log,
                },
                "launch": {"nodes_dir": nodes_dir},
            },
        )
        configure_logging(config, verbose)
        plan = build_launch_plan(config, os.environ, with_launch_tuning=False)
    except TestnetError as e:
        report_failure(e)
        raise SystemExit(1) from None

    launcher = SubprocessLauncher(liveness_timeout=plan.liveness_timeout, cancel_event=threading.Event())
    extra_args = join_extra_args(max_capacity, local_addr, public_addr, clear_data)

    try:
        handle = join_network(plan, launcher, contacts, extra_args=extra_args)
    except (KeyboardInterrupt, LaunchCancelledError):
        launcher.cancel_event.set()
        console.print("\n[yellow]Aborted[/yellow]")
        raise SystemExit(130) from None
    except TestnetError as e:
        report_failure(e)
        raise SystemExit(1) from None

    if handle is None:
        console.print("[yellow]No contact nodes provided, nothing to join[/yellow]")
        return

    console.print(f"\n[green]✓[/green] Node started (PID {handle.pid})")
    console.print(f"Node logs are being stored at: {handle.working_dir}")
