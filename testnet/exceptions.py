"""testnet exception hierarchy."""

from typing import Any


class TestnetError(Exception):
    """Base exception for all testnet errors."""

    # Keep pytest from collecting this class when imported into test modules
    __test__ = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(TestnetError):
    """Error in testnet configuration."""

    pass


class ValidationError(TestnetError):
    """Error in input validation."""

    def __init__(
        self, message: str, field: str | None = None, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, details)
        self.field = field


class LaunchError(TestnetError):
    """Base error for node process launch issues."""

    def __init__(
        self,
        message: str,
        binary_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.binary_path = binary_path


class SpawnFailedError(LaunchError):
    """The OS could not create the node process."""

    pass


class ExitedEarlyError(LaunchError):
    """The node process exited within the liveness window."""

    def __init__(self, message: str, binary_path: str | None = None, exit_code: int | None = None) -> None:
        super().__init__(message, binary_path, {"exit_code": exit_code})
        self.exit_code = exit_code


class LaunchCancelledError(LaunchError):
    """A launch wait was interrupted by cancellation."""

    pass


class RegistryUnavailableError(TestnetError):
    """Base error for an unusable genesis contact registry."""

    def __init__(
        self, message: str, path: str | None = None, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, details)
        self.path = path


class RegistryNotFoundError(RegistryUnavailableError):
    """The contact registry file does not exist (yet)."""

    pass


class RegistryMalformedError(RegistryUnavailableError):
    """The contact registry file could not be deserialized."""

    pass


class NoExistingNetworkError(TestnetError):
    """Extending was requested but no genesis node was found."""

    def __init__(self, message: str, nodes_dir: str | None = None) -> None:
        super().__init__(message, {"nodes_dir": nodes_dir} if nodes_dir else None)
        self.nodes_dir = nodes_dir


class EmptyContactListError(TestnetError):
    """No bootstrap contacts are available for a joining node."""

    pass


class OrchestrationError(TestnetError):
    """Error in launch orchestration."""

    def __init__(
        self, message: str, state: str | None = None, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, details)
        self.state = state


class NodeLaunchError(OrchestrationError):
    """A node failed to launch during orchestration."""

    def __init__(self, node_index: int | None, role: str, cause: TestnetError) -> None:
        label = f"#{node_index}" if node_index is not None else "(unindexed)"
        super().__init__(
            f"Failed to launch {role} node {label}: {cause}",
            state="failed",
        )
        self.node_index = node_index
        self.role = role
        self.cause = cause
