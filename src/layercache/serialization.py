"""
Value codec for string-oriented backends.

Values are stored as compact JSON. Types JSON cannot carry are wrapped in
a tagged object so they can be rebuilt on read:

    bytes          -> {"__layercache_type__": "bytes", "data": "<base64>"}
    mapping        -> {"__layercache_type__": "map", "entries": [[k, v], ...]}

Mappings are tagged when a key is not a string or when the marker key
itself is present.

``None`` is written as the literal ``undefined``. A payload that does not
parse as JSON, or whose tagged objects are malformed, is returned
unchanged; bytes that are not UTF-8 come back as bytes.
"""

import base64
import json
from collections.abc import Mapping
from typing import Any, Union

TYPE_MARKER = "__layercache_type__"
UNDEFINED = "undefined"


def _pack(value: Any) -> Any:
    """Replace bytes and non-string-keyed mappings with tagged objects."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {
            TYPE_MARKER: "bytes",
            "data": base64.b64encode(bytes(value)).decode("ascii"),
        }
    if isinstance(value, Mapping):
        if TYPE_MARKER not in value and all(isinstance(k, str) for k in value):
            return {k: _pack(v) for k, v in value.items()}
        return {
            TYPE_MARKER: "map",
            "entries": [[_pack(k), _pack(v)] for k, v in value.items()],
        }
    if isinstance(value, (list, tuple)):
        return [_pack(item) for item in value]
    return value


def _hashable(key: Any) -> Any:
    if isinstance(key, list):
        return tuple(_hashable(item) for item in key)
    return key


def _revive(obj: dict) -> Any:
    """json object_hook rebuilding tagged values."""
    tag = obj.get(TYPE_MARKER)
    if tag == "bytes":
        return base64.b64decode(obj["data"])
    if tag == "map":
        return {_hashable(k): v for k, v in obj["entries"]}
    return obj


def encode_value(value: Any) -> str:
    """Serialize a value for storage.

    Raises:
        TypeError: If the value contains something JSON cannot represent
    """
    if value is None:
        return UNDEFINED
    return json.dumps(_pack(value), separators=(",", ":"), ensure_ascii=False)


def decode_value(raw: Union[str, bytes, None]) -> Any:
    """Deserialize a stored payload.

    Returns None for a missing payload or the ``undefined`` literal, the
    decoded value for valid JSON, and the raw payload otherwise. Never
    raises.
    """
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError:
            return bytes(raw)
    if raw == UNDEFINED:
        return None
    try:
        return json.loads(raw, object_hook=_revive)
    except (ValueError, KeyError, TypeError):
        # Not JSON, e.g. a plain string starting with "{" or "[", or a
        # tagged object missing its fields
        return raw
