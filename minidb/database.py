"""A database: a directory of tables plus a small metadata file."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from .table import Table
from .types import ColumnDef


class Database:
    """A named database stored in ``<data_dir>/<name>``."""

    def __init__(self, name: str, data_dir: Union[str, os.PathLike] = "data") -> None:
        self.name = name
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / name
        self.metadata_path = self.path / "metadata.json"
        self._tables: Dict[str, Table] = {}

    @property
    def table_names(self) -> list:
        """Names of the tables in this database, in creation or load order."""
        return list(self._tables)

    def create_table(self, table_name: str, columns: Iterable[ColumnDef]) -> bool:
        """Create and save a new table.

        Returns False if the name is empty or contains a space, the table
        already exists, or no columns are given.
        """
        if not table_name or " " in table_name:
            return False
        if table_name in self._tables:
            return False
        columns = list(columns)
        if not columns:
            return False
        table = Table(table_name, self.name, columns, self.data_dir)
        self._tables[table_name] = table
        table.create_index()
        table.save_data()
        return True

    def drop_table(self, table_name: str) -> bool:
        """Remove a table and its files; return False if there is no such table."""
        table = self._tables.get(table_name)
        if table is None:
            return False
        for path in (self.path / f"{table_name}.dat", self.path / f"{table_name}.idx"):
            path.unlink(missing_ok=True)
        del self._tables[table_name]
        return True

    def get_table(self, table_name: str) -> Optional[Table]:
        """Return the named table, or None."""
        return self._tables.get(table_name)

    def load_tables(self) -> bool:
        """Load every ``.dat`` file in the database directory as a table.

        Returns False if the database directory does not exist.
        """
        if not self.path.exists():
            return False
        for entry in sorted(self.path.iterdir()):
            if not (entry.is_file() and entry.suffix == ".dat"):
                continue
            table = Table(entry.stem, self.name, [], self.data_dir)
            if table.load_data():
                self._tables[entry.stem] = table
        return True

    def save_metadata(self) -> bool:
        """Write ``metadata.json`` with the database and table names.

        Returns False if the file cannot be written.
        """
        document = {"name": self.name, "tables": list(self._tables)}
        try:
            with open(self.metadata_path, "w", encoding="utf-8") as stream:
                stream.write(json.dumps(document, ensure_ascii=False, separators=(",", ":")))
        except OSError:
            return False
        return True