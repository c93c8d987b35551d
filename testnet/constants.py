"""testnet constants and enumerations."""

import sys
from enum import Enum

# Node executable looked up under ~/.safe/node when no path is given
NODE_EXECUTABLE = "sn_node.exe" if sys.platform == "win32" else "sn_node"
NODE_HOME_SUBDIR = ".safe/node"

# Relative path from $HOME where the genesis node writes its contact information
GENESIS_CONN_INFO_FILEPATH = ".safe/node/node_connection_info.config"

# Environment variables
NODE_PATH_ENV = "SN_NODE_PATH"
NODE_COUNT_ENV = "NODE_COUNT"
LOG_FILTER_ENV = "RUST_LOG"

DEFAULT_LOG_FILTER = "safe_network=debug"

# Launch defaults
DEFAULT_NUM_NODES = 10
DEFAULT_INTERVAL_SECONDS = 1.0
DEFAULT_NODES_DIR = "./nodes"
DEFAULT_GENESIS_IP = "127.0.0.1"
DEFAULT_IDLE_TIMEOUT_MSEC = 5500
DEFAULT_KEEP_ALIVE_INTERVAL_MSEC = 4000

# Time a freshly spawned node must stay up before it is considered started
NODE_LIVENESS_TIMEOUT_SECONDS = 2.0

# Node directory layout under the nodes root
NODE_DIR_PREFIX = "sn-node"
GENESIS_DIR_NAME = f"{NODE_DIR_PREFIX}-genesis"
GENESIS_INDEX = 1
FLAMEGRAPH_DIR_NAME = "flamegraph"
FLAMEGRAPH_PROGRAM = "flamegraph"

# Config file location
CONFIG_DIR = ".testnet"
CONFIG_FILE = f"{CONFIG_DIR}/config.yaml"

# Minimum node verbosity is INFO (-vv): the genesis node logs its contact info at INFO
MIN_NODE_VERBOSITY = 2


class NodeRole(Enum):
    """Role a node plays in a launch."""

    GENESIS = "genesis"
    JOINING = "joining"
    EXTERNAL_JOIN = "external_join"


class LaunchMode(Enum):
    """How the node binary is started."""

    NORMAL = "normal"
    FLAMEGRAPH = "flamegraph"


class ContactEncoding(Enum):
    """On-disk shape of the genesis contact registry file."""

    # ["ip:port", ...]
    ADDRESSES = "addresses"
    # ["network-id", ["ip:port", ...]]
    NETWORK = "network"


class ContactArgStyle(Enum):
    """How bootstrap contacts are handed to a joining node."""

    INLINE = "inline"
    FILE = "file"


class OrchestrationState(Enum):
    """Launch orchestrator state machine."""

    INIT = "init"
    GENESIS_PENDING = "genesis_pending"
    GENESIS_SKIPPED = "genesis_skipped"
    AWAITING_CONTACTS = "awaiting_contacts"
    DISPATCHING = "dispatching"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OrchestrationState.DONE, OrchestrationState.FAILED)
