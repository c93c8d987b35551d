"""testnet configuration management using Pydantic."""

from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from testnet.constants import (
    CONFIG_FILE,
    DEFAULT_IDLE_TIMEOUT_MSEC,
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_KEEP_ALIVE_INTERVAL_MSEC,
    DEFAULT_NODES_DIR,
    DEFAULT_NUM_NODES,
    NODE_LIVENESS_TIMEOUT_SECONDS,
    ContactArgStyle,
    ContactEncoding,
    LaunchMode,
)
from testnet.exceptions import ConfigurationError


class NodeConfig(BaseModel):
    """Node binary settings."""

    path: str | None = Field(default=None, description="Node binary; defaults to ~/.safe/node/sn_node")
    verbosity: int = Field(default=0, ge=0, le=5)
    log_filter: str | None = Field(default=None, description="RUST_LOG value for the nodes")
    check_version: bool = True


class LaunchConfig(BaseModel):
    """Network launch settings."""

    num_nodes: int = Field(default=DEFAULT_NUM_NODES, ge=1)
    interval_seconds: float = Field(default=DEFAULT_INTERVAL_SECONDS, ge=0)
    nodes_dir: str = DEFAULT_NODES_DIR
    ip: str | None = None
    idle_timeout_msec: int = Field(default=DEFAULT_IDLE_TIMEOUT_MSEC, ge=1)
    keep_alive_interval_msec: int = Field(default=DEFAULT_KEEP_ALIVE_INTERVAL_MSEC, ge=1)
    liveness_timeout_seconds: float = Field(default=NODE_LIVENESS_TIMEOUT_SECONDS, ge=0, le=60)
    flamegraph: bool = False


class ContactsConfig(BaseModel):
    """Genesis contact registry settings."""

    path: str | None = Field(default=None, description="Registry file; defaults to the home location")
    encoding: str = Field(default="addresses", pattern="^(addresses|network)$")
    argument_style: str = Field(default="inline", pattern="^(inline|file)$")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="info", pattern="^(debug|info|warn|error)$")
    directory: str | None = None
    json_output: bool = True


class TestnetConfig(BaseModel):
    """Complete testnet configuration."""

    __test__ = False

    node: NodeConfig = Field(default_factory=NodeConfig)
    launch: LaunchConfig = Field(default_factory=LaunchConfig)
    contacts: ContactsConfig = Field(default_factory=ContactsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "TestnetConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. Defaults to .testnet/config.yaml

        Returns:
            TestnetConfig instance

        Raises:
            ConfigurationError: The file is not valid YAML or fails validation
        """
        config_path = Path(CONFIG_FILE) if config_path is None else Path(config_path)

        if not config_path.exists():
            return cls()

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}", details={"error": str(e)}) from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {config_path}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestnetConfig":
        """Create configuration from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            TestnetConfig instance
        """
        try:
            return cls(**data)
        except PydanticValidationError as e:
            raise ConfigurationError("Invalid testnet configuration", details={"errors": e.errors()}) from e

    def save(self, config_path: str | Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Defaults to .testnet/config.yaml
        """
        config_path = Path(CONFIG_FILE) if config_path is None else Path(config_path)

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()

    @property
    def contact_encoding(self) -> ContactEncoding:
        return ContactEncoding(self.contacts.encoding)

    @property
    def contact_arg_style(self) -> ContactArgStyle:
        return ContactArgStyle(self.contacts.argument_style)

    @property
    def launch_mode(self) -> LaunchMode:
        return LaunchMode.FLAMEGRAPH if self.launch.flamegraph else LaunchMode.NORMAL
