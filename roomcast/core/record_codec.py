"""Record Codec — JSON encoding of persisted collections.

Invariants:
    - A collection payload is a JSON array of JSON objects; anything else is corrupt
    - Decoding never returns partial data: it succeeds completely or raises StoreCorruptError
"""

import json

from roomcast.core.errors import StoreCorruptError


def encode_records(records: list[dict]) -> str:
    return json.dumps(records, ensure_ascii=False)


def decode_records(key: str, raw: str) -> list[dict]:
    """Decode a collection payload or raise StoreCorruptError."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise StoreCorruptError(key, f"invalid JSON ({e})")
    if not isinstance(data, list):
        raise StoreCorruptError(key, f"expected a list, got {type(data).__name__}")
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise StoreCorruptError(key, f"record {index} is not an object")
    return data


def encode_scalar(value: dict) -> str:
    return json.dumps(value, ensure_ascii=False)


def decode_scalar(key: str, raw: str) -> dict:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise StoreCorruptError(key, f"invalid JSON ({e})")
    if not isinstance(data, dict):
        raise StoreCorruptError(key, f"expected an object, got {type(data).__name__}")
    return data
