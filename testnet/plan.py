"""Build the immutable LaunchPlan from configuration and the environment.

This is the only place the process environment and home directory are
consulted; everything downstream receives the finished plan.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from testnet.config import TestnetConfig
from testnet.constants import LOG_FILTER_ENV, NODE_EXECUTABLE, NODE_HOME_SUBDIR, NODE_PATH_ENV
from testnet.contacts import default_registry_path
from testnet.launch_types import LaunchPlan
from testnet.logging import get_logger
from testnet.node_args import launch_tuning_args, resolve_log_filter, verbosity_flag

logger = get_logger("plan")


def resolve_node_path(configured: str | None, environ: Mapping[str, str]) -> Path:
    """Locate the node binary.

    Order: configured path, then $SN_NODE_PATH, then ~/.safe/node/sn_node.
    """
    if configured:
        return Path(configured).expanduser()
    from_env = environ.get(NODE_PATH_ENV)
    if from_env:
        return Path(from_env).expanduser()
    return Path.home() / NODE_HOME_SUBDIR / NODE_EXECUTABLE


def build_launch_plan(
    config: TestnetConfig,
    environ: Mapping[str, str],
    *,
    with_launch_tuning: bool = True,
) -> LaunchPlan:
    """Create the LaunchPlan for one run.

    Args:
        config: Effective configuration (file values with CLI overrides applied)
        environ: Environment to read RUST_LOG and SN_NODE_PATH from
        with_launch_tuning: Pass the network tuning flags to every node

    Returns:
        Immutable LaunchPlan
    """
    log_filter = resolve_log_filter(config.node.log_filter, environ)
    logger.info(f"Using {LOG_FILTER_ENV} '{log_filter}'")

    base_args: tuple[str, ...] = (verbosity_flag(config.node.verbosity),)
    if with_launch_tuning:
        base_args += launch_tuning_args(
            config.launch.idle_timeout_msec,
            config.launch.keep_alive_interval_msec,
        )

    registry_path = (
        Path(config.contacts.path).expanduser() if config.contacts.path else default_registry_path()
    )

    return LaunchPlan(
        binary_path=resolve_node_path(config.node.path, environ),
        nodes_root_dir=Path(config.launch.nodes_dir).expanduser().resolve(),
        registry_path=registry_path,
        base_env=((LOG_FILTER_ENV, log_filter),),
        base_args=base_args,
        interval=config.launch.interval_seconds,
        genesis_ip=config.launch.ip,
        contact_encoding=config.contact_encoding,
        contact_arg_style=config.contact_arg_style,
        launch_mode=config.launch_mode,
        liveness_timeout=config.launch.liveness_timeout_seconds,
        check_version=config.node.check_version,
    )
