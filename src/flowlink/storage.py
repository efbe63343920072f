"""
Persistence of connection records.

Connections are stored as JSON strings in a key/value collaborator so that
lines and decorations can be re-associated with their logical connection
after a reload. The collaborator limits entry size; records that would
exceed it are refused here before reaching it.
"""

import json
from typing import Any, Dict, List, Optional, Protocol

from .models import FlowlinkError

# Largest value the storage collaborator accepts
MAX_RECORD_BYTES = 100 * 1024

KEY_PREFIX = "flowlink:connection:"
INDEX_KEY = "flowlink:index"


class StorageError(FlowlinkError):
    """Raised when a record cannot be stored."""


class Storage(Protocol):
    """Key/value store owned by the host."""

    def get(self, key: str) -> str:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStorage:
    """Dictionary-backed storage with the host's size limit."""

    def __init__(self, max_bytes: int = MAX_RECORD_BYTES):
        self.max_bytes = max_bytes
        self.data: Dict[str, str] = {}

    def get(self, key: str) -> str:
        return self.data.get(key, "")

    def set(self, key: str, value: str) -> None:
        if len(value.encode("utf-8")) > self.max_bytes:
            raise StorageError(f"Value for {key!r} exceeds {self.max_bytes} bytes")
        if value:
            self.data[key] = value
        else:
            self.data.pop(key, None)


def record_key(connection_id: str) -> str:
    return f"{KEY_PREFIX}{connection_id}"


def encode_record(record: Dict[str, Any]) -> str:
    """Serialize a record, refusing anything over the size limit."""
    text = json.dumps(record, sort_keys=True, separators=(",", ":"))
    size = len(text.encode("utf-8"))
    if size > MAX_RECORD_BYTES:
        raise StorageError(f"Record is {size} bytes, limit is {MAX_RECORD_BYTES}")
    return text


def save_record(storage: Storage, connection_id: str, record: Dict[str, Any]) -> None:
    storage.set(record_key(connection_id), encode_record(record))


def load_record(storage: Storage, connection_id: str) -> Optional[Dict[str, Any]]:
    text = storage.get(record_key(connection_id))
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise StorageError(f"Corrupt record for {connection_id!r}: {e}") from e


def delete_record(storage: Storage, connection_id: str) -> None:
    storage.set(record_key(connection_id), "")


def save_index(storage: Storage, connection_ids: List[str]) -> None:
    storage.set(INDEX_KEY, encode_record({"ids": list(connection_ids)}))


def load_index(storage: Storage) -> List[str]:
    text = storage.get(INDEX_KEY)
    if not text:
        return []
    try:
        return list(json.loads(text).get("ids", []))
    except (json.JSONDecodeError, AttributeError) as e:
        raise StorageError(f"Corrupt connection index: {e}") from e
