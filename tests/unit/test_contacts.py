"""Unit tests for testnet/contacts.py: genesis contact registry I/O."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from testnet.constants import ContactEncoding
from testnet.contacts import (
    default_registry_path,
    parse_addresses,
    read_contact_registry,
    write_contact_registry,
)
from testnet.exceptions import (
    RegistryMalformedError,
    RegistryNotFoundError,
    RegistryUnavailableError,
    ValidationError,
)
from testnet.launch_types import ContactRegistry, SocketAddress


class TestParseAddresses:
    """Tests for parse_addresses."""

    def test_keeps_order_and_duplicates(self) -> None:
        parsed = parse_addresses(["127.0.0.1:2", "127.0.0.1:1", "127.0.0.1:2"])
        assert [a.port for a in parsed] == [2, 1, 2]

    def test_invalid_value(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_addresses(["127.0.0.1:1", "nope"])
        assert exc_info.value.field == "address"
        assert exc_info.value.details == {"value": "nope"}


class TestReadContactRegistry:
    """Tests for read_contact_registry."""

    @pytest.mark.smoke
    def test_address_list(self, registry_path: Path) -> None:
        registry_path.write_text('["127.0.0.1:12000", "127.0.0.1:12001"]')

        registry = read_contact_registry(registry_path)

        assert registry.network_id is None
        assert registry.addresses == {SocketAddress("127.0.0.1", 12000), SocketAddress("127.0.0.1", 12001)}

    def test_duplicates_collapsed(self, registry_path: Path) -> None:
        registry_path.write_text('["127.0.0.1:12000", "127.0.0.1:12000"]')
        assert len(read_contact_registry(registry_path).addresses) == 1

    def test_empty_list_is_not_an_error_here(self, registry_path: Path) -> None:
        registry_path.write_text("[]")
        assert read_contact_registry(registry_path).is_empty

    def test_network_encoding(self, registry_path: Path) -> None:
        registry_path.write_text('["net-42", ["[::1]:12000"]]')

        registry = read_contact_registry(registry_path, ContactEncoding.NETWORK)

        assert registry.network_id == "net-42"
        assert registry.sorted_addresses() == (SocketAddress("::1", 12000),)

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "absent.config"
        with pytest.raises(RegistryNotFoundError) as exc_info:
            read_contact_registry(path)
        assert exc_info.value.path == str(path)
        assert isinstance(exc_info.value, RegistryUnavailableError)

    def test_unreadable_file(self, registry_path: Path) -> None:
        registry_path.write_text("[]")
        with patch.object(Path, "open", side_effect=PermissionError("denied")):
            with pytest.raises(RegistryUnavailableError) as exc_info:
                read_contact_registry(registry_path)
        assert not isinstance(exc_info.value, RegistryNotFoundError)

    @pytest.mark.parametrize(
        ("content", "encoding"),
        [
            ("{not json", ContactEncoding.ADDRESSES),
            ('{"a": 1}', ContactEncoding.ADDRESSES),
            ("[1, 2]", ContactEncoding.ADDRESSES),
            ('["not-an-address"]', ContactEncoding.ADDRESSES),
            # Shapes are never auto-detected
            ('["net", ["127.0.0.1:1"]]', ContactEncoding.ADDRESSES),
            ('["127.0.0.1:1"]', ContactEncoding.NETWORK),
            ('[1, ["127.0.0.1:1"]]', ContactEncoding.NETWORK),
            ('["net", "127.0.0.1:1"]', ContactEncoding.NETWORK),
        ],
    )
    def test_malformed(self, registry_path: Path, content: str, encoding: ContactEncoding) -> None:
        registry_path.write_text(content)
        with pytest.raises(RegistryMalformedError):
            read_contact_registry(registry_path, encoding)


class TestWriteContactRegistry:
    """Tests for write_contact_registry."""

    def test_writes_sorted_address_list(self, tmp_path: Path) -> None:
        path = tmp_path / "sub" / "contacts.config"
        registry = ContactRegistry(
            addresses=frozenset({SocketAddress("127.0.0.1", 2), SocketAddress("127.0.0.1", 1)})
        )

        assert write_contact_registry(path, registry) == path
        assert json.loads(path.read_text()) == ["127.0.0.1:1", "127.0.0.1:2"]
        assert [p.name for p in path.parent.iterdir()] == ["contacts.config"]

    def test_network_encoding(self, registry_path: Path) -> None:
        registry = ContactRegistry(addresses=frozenset({SocketAddress("127.0.0.1", 1)}), network_id="n")
        write_contact_registry(registry_path, registry, ContactEncoding.NETWORK)

        assert json.loads(registry_path.read_text()) == ["n", ["127.0.0.1:1"]]
        assert read_contact_registry(registry_path, ContactEncoding.NETWORK) == registry

    def test_network_encoding_needs_id(self, registry_path: Path) -> None:
        registry = ContactRegistry(addresses=frozenset({SocketAddress("127.0.0.1", 1)}))
        with pytest.raises(ValidationError):
            write_contact_registry(registry_path, registry, ContactEncoding.NETWORK)

    def test_replaces_existing(self, registry_path: Path) -> None:
        registry_path.write_text('["127.0.0.1:9"]')
        registry = ContactRegistry(addresses=frozenset({SocketAddress("127.0.0.1", 1)}))
        write_contact_registry(registry_path, registry)
        assert read_contact_registry(registry_path) == registry


class TestDefaultRegistryPath:
    """Tests for default_registry_path."""

    def test_under_home(self, tmp_path: Path) -> None:
        with patch.object(Path, "home", return_value=tmp_path):
            assert default_registry_path() == tmp_path / ".safe" / "node" / "node_connection_info.config"
