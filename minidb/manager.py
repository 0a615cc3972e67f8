"""Registry of databases kept under one data directory."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Dict, Optional, Union

from .database import Database


class DBManager:
    """Creates, drops and selects databases stored under ``data_path``."""

    def __init__(self, data_path: Union[str, os.PathLike] = "data") -> None:
        self.data_path = Path(data_path)
        self._databases: Dict[str, Database] = {}
        self._current = ""

    @property
    def database_names(self) -> list:
        """Names of the known databases."""
        return list(self._databases)

    def init_data_directory(self) -> None:
        """Create the data directory if it does not exist."""
        self.data_path.mkdir(parents=True, exist_ok=True)

    def load_databases(self) -> None:
        """Register every subdirectory of the data directory as a database."""
        for entry in sorted(self.data_path.iterdir()):
            if entry.is_dir():
                database = Database(entry.name, self.data_path)
                database.load_tables()
                self._databases[entry.name] = database

    def create_database(self, db_name: str) -> bool:
        """Create a database directory.

        Returns False if the name is empty or contains a space, the database
        is already known, or its directory already exists.
        """
        if not db_name or " " in db_name:
            return False
        if db_name in self._databases:
            return False
        try:
            (self.data_path / db_name).mkdir()
        except FileExistsError:
            return False
        self._databases[db_name] = Database(db_name, self.data_path)
        return True

    def drop_database(self, db_name: str) -> bool:
        """Forget a database and delete its directory.

        Returns False if the database is not known.
        """
        if self._databases.pop(db_name, None) is None:
            return False
        shutil.rmtree(self.data_path / db_name, ignore_errors=True)
        if self._current == db_name:
            self._current = ""
        return True

    def use_database(self, db_name: str) -> bool:
        """Make a known database current; return False if it is unknown."""
        if db_name not in self._databases:
            return False
        self._current = db_name
        return True

    def current_database(self) -> Optional[Database]:
        """Return the current database, or None if none is selected."""
        if not self._current:
            return None
        return self._databases.get(self._current)

    def current_database_name(self) -> str:
        """Return the current database name, or an empty string."""
        return self._current

    def save_all(self) -> None:
        """Write the metadata file of every known database."""
        for database in self._databases.values():
            database.save_metadata()