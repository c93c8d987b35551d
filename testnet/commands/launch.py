"""testnet launch command - start or extend a local network."""

from __future__ import annotations

import os
import threading

import click
from rich.console import Console
from rich.table import Table

from testnet.commands._utils import configure_logging, load_config, report_failure
from testnet.constants import NODE_COUNT_ENV, NODE_PATH_ENV
from testnet.exceptions import LaunchCancelledError, TestnetError
from testnet.launch_types import LaunchPlan, LaunchReport
from testnet.launchers import SubprocessLauncher
from testnet.logging import get_logger
from testnet.orchestrator import LaunchOrchestrator
from testnet.plan import build_launch_plan

console = Console()
logger = get_logger("launch")


@click.command()
@click.option("--node-path", "-p", help=f"Node binary path (the {NODE_PATH_ENV} env var can also be used)")
@click.option("--nodes-verbosity", "-y", count=True, help="Extra node log verbosity on top of INFO")
@click.option("--rust-log", "-l", help="RUST_LOG value to launch the nodes with")
@click.option("--interval", "-i", type=float, help="Seconds between launching each node")
@click.option("--idle-timeout-msec", type=int, help="Milliseconds before a peer is deemed timed out")
@click.option("--keep-alive-interval-msec", type=int, help="Milliseconds between keep alive messages")
@click.option("--nodes-dir", "-d", help="Directory where node output directories are written")
@click.option(
    "--num-nodes", "-n",
    type=click.IntRange(min=1),
    envvar=NODE_COUNT_ENV,
    help="Number of nodes to launch besides the genesis node",
)
@click.option("--ip", help="IP the genesis node binds to")
@click.option("--add", "add_nodes", is_flag=True, help="Add nodes to the network already in the nodes dir")
@click.option("--contacts-file", help="Genesis contact registry file")
@click.option("--flamegraph/--no-flamegraph", default=None, help="Run nodes under the flamegraph profiler")
@click.option("--config", "config_path", help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def launch(
    node_path: str | None,
    nodes_verbosity: int,
    rust_log: str | None,
    interval: float | None,
    idle_timeout_msec: int | None,
    keep_alive_interval_msec: int | None,
    nodes_dir: str | None,
    num_nodes: int | None,
    ip: str | None,
    add_nodes: bool,
    contacts_file: str | None,
    flamegraph: bool | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Launch a local network: a genesis node, then nodes joining it one by one.

    Examples:

        testnet launch --num-nodes 10

        testnet launch --add --num-nodes 2

        testnet launch -i 3 -d ./my-nodes --rust-log safe_network=trace
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
                "launch": {
                    "num_nodes": num_nodes,
                    "interval_seconds": interval,
                    "nodes_dir": nodes_dir,
                    "ip": ip,
                    "idle_timeout_msec": idle_timeout_msec,
                    "keep_alive_interval_msec": keep_alive_interval_msec,
                    "flamegraph": flamegraph,
                },
                "contacts": {"path": contacts_file},
            },
        )
        configure_logging(config, verbose)
        plan = build_launch_plan(config, os.environ)
    except TestnetError as e:
        report_failure(e)
        raise SystemExit(1) from None

    launcher = SubprocessLauncher(liveness_timeout=plan.liveness_timeout, cancel_event=threading.Event())
    orchestrator = LaunchOrchestrator(plan, launcher)

    requested = config.launch.num_nodes
    action = "Adding" if add_nodes else "Launching"
    console.print(f"\n[bold cyan]testnet[/bold cyan] - {action} {requested} node(s)\n")
    show_plan(plan)

    try:
        report = orchestrator.run(requested, extend=add_nodes)
    except (KeyboardInterrupt, LaunchCancelledError):
        orchestrator.cancel()
        logger.warning(f"Launch aborted in state {orchestrator.state.value}")
        console.print("\n[yellow]Aborted[/yellow] - nodes already started were left running")
        raise SystemExit(130) from None
    except TestnetError as e:
        show_report(orchestrator.report)
        report_failure(e)
        raise SystemExit(1) from None

    show_report(report)
    console.print("\n[green]✓[/green] Done!")


def show_plan(plan: LaunchPlan) -> None:
    """Show the shared launch settings."""
    table = Table(title="Launch Plan", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Node binary", str(plan.binary_path))
    table.add_row("Nodes dir", str(plan.nodes_root_dir))
    table.add_row("Contacts file", str(plan.registry_path))
    table.add_row("Interval", f"{plan.interval:g}s")
    table.add_row("Mode", plan.launch_mode.value)
    table.add_row("Common args", " ".join(plan.base_args))

    console.print(table)


def show_report(report: LaunchReport) -> None:
    """Show the nodes launched during a run."""
    if not report.launched_count:
        return

    table = Table(title=f"Launched Nodes ({report.state.value})")
    table.add_column("Node")
    table.add_column("PID", justify="right")
    table.add_column("Directory")

    handles = ([report.genesis] if report.genesis else []) + report.nodes
    for handle in handles:
        table.add_row(handle.label, str(handle.pid), str(handle.working_dir))

    console.print(table)
