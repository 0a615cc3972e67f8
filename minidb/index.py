"""Primary-key index mapping key values to row positions."""

from __future__ import annotations

import os
import struct
from pathlib import Path
from typing import BinaryIO, Dict, List, Tuple, Union

from .types import Operator, Value, compare_values

_SIZE = struct.Struct("<Q")
_FLAG = struct.Struct("<?")
_INT = struct.Struct("<i")


def _sort_key(key: Value) -> Tuple[int, Value]:
    # Integers order before strings, then by value.
    return (0, key) if isinstance(key, int) else (1, key)


def _read(stream: BinaryIO, fmt: struct.Struct) -> tuple:
    chunk = stream.read(fmt.size)
    if len(chunk) != fmt.size:
        raise ValueError("index file is truncated")
    return fmt.unpack(chunk)


def _read_bytes(stream: BinaryIO, length: int) -> bytes:
    chunk = stream.read(length)
    if len(chunk) != length:
        raise ValueError("index file is truncated")
    return chunk


class BTreeIndex:
    """Ordered unique index from key values to row ids."""

    def __init__(self) -> None:
        self._entries: Dict[Value, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _ordered(self) -> List[Tuple[Value, int]]:
        return sorted(self._entries.items(), key=lambda item: _sort_key(item[0]))

    def insert(self, key: Value, row_id: int) -> None:
        """Map key to row_id, replacing any previous mapping."""
        self._entries[key] = row_id

    def remove(self, key: Value) -> bool:
        """Remove key; return whether it was present."""
        return self._entries.pop(key, None) is not None

    def find(self, key: Value, op: Operator) -> List[int]:
        """Return row ids of keys matching ``op`` against ``key``, in key order."""
        if op is Operator.EQUAL:
            row = self._entries.get(key)
            return [] if row is None else [row]
        return [row for k, row in self._ordered() if compare_values(k, key, op)]

    def save(self, path: Union[str, os.PathLike]) -> None:
        """Write the index to a binary file, replacing its contents."""
        with open(path, "wb") as stream:
            stream.write(_SIZE.pack(len(self._entries)))
            for key, row_id in self._ordered():
                is_string = isinstance(key, str)
                stream.write(_FLAG.pack(is_string))
                if is_string:
                    raw = key.encode("utf-8")
                    stream.write(_SIZE.pack(len(raw)))
                    stream.write(raw)
                else:
                    stream.write(_INT.pack(key))
                stream.write(_SIZE.pack(row_id))

    def load(self, path: Union[str, os.PathLike]) -> bool:
        """Replace the index with the file's contents.

        Returns False if the file does not exist; raises ValueError if the
        file is truncated.
        """
        path = Path(path)
        if not path.exists():
            return False
        entries: Dict[Value, int] = {}
        with open(path, "rb") as stream:
            (count,) = _read(stream, _SIZE)
            for _ in range(count):
                (is_string,) = _read(stream, _FLAG)
                key: Value
                if is_string:
                    (length,) = _read(stream, _SIZE)
                    key = _read_bytes(stream, length).decode("utf-8")
                else:
                    (key,) = _read(stream, _INT)
                (row_id,) = _read(stream, _SIZE)
                entries[key] = row_id
        self._entries = entries
        return True