"""JSON serialization utilities with optional orjson acceleration.

Uses orjson when available, falling back to the stdlib json module. All
functions return ``str`` (never bytes), even with the orjson backend.

Install the 'performance' extra to enable orjson:
    pip install testnet[performance]
"""

from __future__ import annotations

from typing import IO, Any

__all__ = ["HAS_ORJSON", "dumps", "load", "loads"]

try:
    import orjson as _orjson

    HAS_ORJSON: bool = True

    def loads(data: str | bytes) -> Any:
        """Parse a JSON string or bytes object."""
        return _orjson.loads(data)

    def dumps(obj: Any, *, indent: bool = False) -> str:
        """Serialize an object to a compact (or 2-space indented) JSON string."""
        option = _orjson.OPT_INDENT_2 if indent else 0
        result: str = _orjson.dumps(obj, option=option).decode()
        return result

    def load(fp: IO[str] | IO[bytes]) -> Any:
        """Deserialize JSON from a file-like object."""
        return _orjson.loads(fp.read())

except ImportError:
    import json as _json

    HAS_ORJSON = False

    def loads(data: str | bytes) -> Any:
        """Parse a JSON string or bytes object."""
        return _json.loads(data)

    def dumps(obj: Any, *, indent: bool = False) -> str:
        """Serialize an object to a compact (or 2-space indented) JSON string."""
        if indent:
            return _json.dumps(obj, indent=2)
        return _json.dumps(obj, separators=(",", ":"))

    def load(fp: IO[str] | IO[bytes]) -> Any:
        """Deserialize JSON from a file-like object."""
        return _json.load(fp)
