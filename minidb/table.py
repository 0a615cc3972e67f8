"""Tables: column layout, stored records and the primary-key index."""

from __future__ import annotations

import os
import struct
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Sequence, Union

from .index import BTreeIndex
from .types import ColumnDef, DataType, Operator, Record, Value, compare_values

_SIZE = struct.Struct("<Q")
_INT = struct.Struct("<i")
_FLAG = struct.Struct("<?")


def _read(stream: BinaryIO, fmt: struct.Struct) -> tuple:
    chunk = stream.read(fmt.size)
    if len(chunk) != fmt.size:
        raise ValueError("table file is truncated")
    return fmt.unpack(chunk)


def _read_text(stream: BinaryIO) -> str:
    (length,) = _read(stream, _SIZE)
    chunk = stream.read(length)
    if len(chunk) != length:
        raise ValueError("table file is truncated")
    return chunk.decode("utf-8")


def _write_text(stream: BinaryIO, text: str) -> None:
    raw = text.encode("utf-8")
    stream.write(_SIZE.pack(len(raw)))
    stream.write(raw)


def _matches_type(value: Value, data_type: DataType) -> bool:
    if data_type is DataType.INT:
        return isinstance(value, int)
    return isinstance(value, str)


class Table:
    """A table stored as ``<data_dir>/<db_name>/<name>.dat``.

    If a column is the primary key, an index over it is kept in
    ``<name>.idx`` next to the data file.
    """

    def __init__(
        self,
        name: str,
        db_name: str,
        columns: Iterable[ColumnDef],
        data_dir: Union[str, os.PathLike] = "data",
    ) -> None:
        self.name = name
        self.db_name = db_name
        self.columns: List[ColumnDef] = list(columns)
        self.db_path = Path(data_dir) / db_name
        self.path = self.db_path / f"{name}.dat"
        self.index_path = self.db_path / f"{name}.idx"
        self.primary_key_column: Optional[int] = next(
            (i for i, col in enumerate(self.columns) if col.is_primary), None
        )
        self._records: List[Record] = []
        self._index: Optional[BTreeIndex] = None

    def column_index(self, col_name: str) -> Optional[int]:
        """Return the position of the named column, or None."""
        for position, column in enumerate(self.columns):
            if column.name == col_name:
                return position
        return None

    def create_index(self) -> bool:
        """Build the primary-key index if the table has a key and no index yet."""
        if self.primary_key_column is None or self._index is not None:
            return False
        self._rebuild_index()
        return True

    def _rebuild_index(self) -> None:
        index = BTreeIndex()
        key_col = self.primary_key_column
        for row_id, record in enumerate(self._records):
            index.insert(record[key_col], row_id)
        self._index = index

    def _matching_rows(self, col: int, op: Operator, value: Value) -> List[int]:
        if col == self.primary_key_column and self._index is not None and op is Operator.EQUAL:
            return self._index.find(value, op)
        return [
            row_id
            for row_id, record in enumerate(self._records)
            if compare_values(record[col], value, op)
        ]

    def insert(self, values: Sequence[Value]) -> bool:
        """Append a record and save the table.

        Returns False when the values do not fit the columns or the primary
        key is already present.
        """
        if len(values) != len(self.columns):
            return False
        if not all(_matches_type(v, c.type) for v, c in zip(values, self.columns)):
            return False
        key_col = self.primary_key_column
        if key_col is not None:
            key = values[key_col]
            if self._index is not None:
                if self._index.find(key, Operator.EQUAL):
                    return False
            elif any(compare_values(r[key_col], key, Operator.EQUAL) for r in self._records):
                return False
        row_id = len(self._records)
        self._records.append(list(values))
        if key_col is not None and self._index is not None:
            self._index.insert(values[key_col], row_id)
        self.save_data()
        return True

    def delete_where(self, col_name: str, op: Operator, value: Value) -> int:
        """Delete records whose column matches; return how many were deleted.

        An unknown column deletes nothing.
        """
        col = self.column_index(col_name)
        if col is None:
            return 0
        doomed = set(self._matching_rows(col, op, value))
        if not doomed:
            return 0
        self._records = [r for i, r in enumerate(self._records) if i not in doomed]
        if self.primary_key_column is not None and self._index is not None:
            self._rebuild_index()
        self.save_data()
        return len(doomed)

    def update_where(
        self,
        set_col_name: str,
        set_value: Value,
        where_col_name: str,
        op: Operator,
        where_value: Value,
    ) -> int:
        """Set one column on matching records; return how many were updated.

        Unknown columns or a value of the wrong type update nothing.
        """
        set_col = self.column_index(set_col_name)
        where_col = self.column_index(where_col_name)
        if set_col is None or where_col is None:
            return 0
        if not _matches_type(set_value, self.columns[set_col].type):
            return 0
        rows = self._matching_rows(where_col, op, where_value)
        if not rows:
            return 0
        reindex = set_col == self.primary_key_column and self._index is not None
        for row_id in rows:
            record = self._records[row_id]
            if reindex:
                self._index.remove(record[set_col])
            record[set_col] = set_value
            if reindex:
                self._index.insert(set_value, row_id)
        self.save_data()
        return len(rows)

    def _project(self, record: Record, select_col: str, select_index: Optional[int]) -> Record:
        if select_col == "*":
            return list(record)
        return [record[select_index]]

    def select_where(
        self, col_name: str, op: Operator, value: Value, select_col: str
    ) -> List[Record]:
        """Return matching records, whole for ``*`` or as a single column."""
        col = self.column_index(col_name)
        select_index = self.column_index(select_col)
        if col is None or (select_index is None and select_col != "*"):
            return []
        return [
            self._project(self._records[row_id], select_col, select_index)
            for row_id in self._matching_rows(col, op, value)
        ]

    def select_all(self, select_col: str) -> List[Record]:
        """Return every record, whole for ``*`` or as a single column."""
        select_index = None
        if select_col != "*":
            select_index = self.column_index(select_col)
            if select_index is None:
                return []
        return [self._project(r, select_col, select_index) for r in self._records]

    def load_data(self) -> bool:
        """Read columns and records from the data file.

        Returns False if the file does not exist; raises ValueError if it is
        truncated or malformed.
        """
        if not self.path.exists():
            return False
        columns: List[ColumnDef] = []
        records: List[Record] = []
        primary: Optional[int] = None
        with open(self.path, "rb") as stream:
            (column_count,) = _read(stream, _SIZE)
            for position in range(column_count):
                name = _read_text(stream)
                (type_value,) = _read(stream, _INT)
                (is_primary,) = _read(stream, _FLAG)
                columns.append(ColumnDef(name, DataType(type_value), is_primary))
                if is_primary:
                    primary = position
            (record_count,) = _read(stream, _SIZE)
            for _ in range(record_count):
                record: Record = []
                for column in columns:
                    if column.type is DataType.INT:
                        (number,) = _read(stream, _INT)
                        record.append(number)
                    else:
                        record.append(_read_text(stream))
                records.append(record)
        self.columns = columns
        self.primary_key_column = primary
        self._records = records
        self._index = None
        if primary is not None:
            self.create_index()
            if self.index_path.exists():
                self._index.load(self.index_path)
        return True

    def save_data(self) -> None:
        """Write columns and records to the data file, and the index if any."""
        self.db_path.mkdir(exist_ok=True)
        with open(self.path, "wb") as stream:
            stream.write(_SIZE.pack(len(self.columns)))
            for column in self.columns:
                _write_text(stream, column.name)
                stream.write(_INT.pack(int(column.type)))
                stream.write(_FLAG.pack(column.is_primary))
            stream.write(_SIZE.pack(len(self._records)))
            for record in self._records:
                for column, value in zip(self.columns, record):
                    if column.type is DataType.INT:
                        stream.write(_INT.pack(value))
                    else:
                        _write_text(stream, value)
        if self.primary_key_column is not None and self._index is not None:
            self._index.save(self.index_path)