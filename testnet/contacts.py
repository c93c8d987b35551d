"""Genesis contact registry reading and writing.

The genesis node publishes its bootstrap addresses to a JSON file once it is
ready. Two encodings exist and the caller must say which one is in use:

- ``ContactEncoding.ADDRESSES``: ``["127.0.0.1:12000", ...]``
- ``ContactEncoding.NETWORK``: ``["<network id>", ["127.0.0.1:12000", ...]]``
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from testnet.constants import GENESIS_CONN_INFO_FILEPATH, ContactEncoding
from testnet.exceptions import (
    RegistryMalformedError,
    RegistryNotFoundError,
    RegistryUnavailableError,
    ValidationError,
)
from testnet.json_utils import dumps as json_dumps
from testnet.json_utils import load as json_load
from testnet.launch_types import ContactRegistry, SocketAddress
from testnet.logging import get_logger

logger = get_logger("contacts")

__all__ = [
    "default_registry_path",
    "parse_addresses",
    "read_contact_registry",
    "write_contact_registry",
]


def default_registry_path() -> Path:
    """Well-known location of the genesis contact file under the home directory."""
    return Path.home() / GENESIS_CONN_INFO_FILEPATH


def parse_addresses(values: Iterable[str]) -> tuple[SocketAddress, ...]:
    """Parse ``ip:port`` strings, keeping order and duplicates.

    Raises:
        ValidationError: If any value is not a socket address
    """
    parsed = []
    for value in values:
        try:
            parsed.append(SocketAddress.parse(value))
        except ValueError as e:
            raise ValidationError(str(e), field="address", details={"value": value}) from e
    return tuple(parsed)


def _decode(data: Any, encoding: ContactEncoding) -> tuple[str | None, list[Any]]:
    if encoding is ContactEncoding.ADDRESSES:
        if not isinstance(data, list):
            raise ValueError("expected a JSON array of addresses")
        return None, data

    if not (isinstance(data, list) and len(data) == 2):
        raise ValueError("expected a JSON array of [network_id, addresses]")
    network_id, addresses = data
    if not isinstance(network_id, str):
        raise ValueError("network id must be a string")
    if not isinstance(addresses, list):
        raise ValueError("addresses must be a JSON array")
    return network_id, addresses


def read_contact_registry(
    path: str | Path,
    encoding: ContactEncoding = ContactEncoding.ADDRESSES,
) -> ContactRegistry:
    """Read the genesis contact registry once.

    The caller is responsible for having given the genesis node time to write
    the file; this function does not poll.

    Args:
        path: Registry file
        encoding: Which file shape to expect

    Returns:
        ContactRegistry with deduplicated addresses

    Raises:
        RegistryNotFoundError: The file does not exist
        RegistryMalformedError: The file content cannot be decoded
    """
    path = Path(path)
    try:
        with path.open("rb") as f:
            data = json_load(f)
    except FileNotFoundError as e:
        raise RegistryNotFoundError(
            f"Failed to open node connection information file at '{path}'", path=str(path)
        ) from e
    except OSError as e:
        raise RegistryUnavailableError(
            f"Failed to read node connection information file at '{path}'",
            path=str(path),
            details={"error": str(e)},
        ) from e
    except ValueError as e:
        raise RegistryMalformedError(
            f"Failed to parse content of node connection information file at '{path}'",
            path=str(path),
            details={"error": str(e)},
        ) from e

    try:
        network_id, raw_addresses = _decode(data, encoding)
        if not all(isinstance(item, str) for item in raw_addresses):
            raise ValueError("addresses must be strings")
        addresses = frozenset(SocketAddress.parse(item) for item in raw_addresses)
    except ValueError as e:
        raise RegistryMalformedError(
            f"Failed to parse content of node connection information file at '{path}'",
            path=str(path),
            details={"error": str(e), "encoding": encoding.value},
        ) from e

    registry = ContactRegistry(addresses=addresses, network_id=network_id)
    logger.debug(f"Connection info file: {path}")
    logger.debug(f"Genesis node contact info: {[str(a) for a in registry.sorted_addresses()]}")
    return registry


def write_contact_registry(
    path: str | Path,
    registry: ContactRegistry,
    encoding: ContactEncoding = ContactEncoding.ADDRESSES,
) -> Path:
    """Write a contact registry in the given encoding.

    The file is replaced atomically so a concurrent reader never sees a
    partial document.

    Args:
        path: Destination file
        registry: Contacts to write
        encoding: File shape to produce

    Returns:
        Path written
    """
    path = Path(path)
    addresses = [str(a) for a in registry.sorted_addresses()]
    if encoding is ContactEncoding.NETWORK:
        if registry.network_id is None:
            raise ValidationError("Network encoding needs a network id", field="network_id")
        payload: Any = [registry.network_id, addresses]
    else:
        payload = addresses

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(json_dumps(payload))
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path
