"""Parsing and execution of the small SQL dialect."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .manager import DBManager
from .types import ColumnDef, DataType, Operator, Record, string_to_value

_CREATE_DATABASE = re.compile(r"create\s+database\s+(\w+)", re.ASCII)
_DROP_DATABASE = re.compile(r"drop\s+database\s+(\w+)", re.ASCII)
_USE = re.compile(r"use\s+(\w+)", re.ASCII)
_CREATE_TABLE = re.compile(r"create\s+table\s+(\w+)\s*\((.*)\)", re.ASCII)
_DROP_TABLE = re.compile(r"drop\s+table\s+(\w+)", re.ASCII)
_INSERT = re.compile(r"insert\s+(\w+)\s+values\s*\((.*)\)", re.ASCII)
_DELETE_WHERE = re.compile(r"delete\s+(\w+)\s+where\s+(.*)", re.ASCII)
_DELETE = re.compile(r"delete\s+(\w+)", re.ASCII)
_UPDATE = re.compile(
    r"update\s+(\w+)\s+set\s+(\w+)\s*=\s*([^,\s]+)(?:\s+where\s+(.*))?",
    re.ASCII | re.IGNORECASE,
)
_SELECT_WHERE = re.compile(
    r"select\s+(\S+)\s+from\s+(\w+)\s+where\s+(.*)", re.ASCII | re.IGNORECASE
)
_SELECT = re.compile(r"select\s+(\S+)\s+from\s+(\w+)", re.ASCII | re.IGNORECASE)
_WHERE = re.compile(r"(\w+)\s*([=<>])\s*([^,\s]+)", re.ASCII)
_COLUMN_DEF = re.compile(r"(\w+)\s+(\w+)(?:\s+primary)?", re.ASCII)

_SEPARATOR = "--------"


class SQLType(enum.Enum):
    """Kind of SQL statement."""

    CREATE_DATABASE = enum.auto()
    DROP_DATABASE = enum.auto()
    USE_DATABASE = enum.auto()
    CREATE_TABLE = enum.auto()
    DROP_TABLE = enum.auto()
    INSERT = enum.auto()
    DELETE = enum.auto()
    UPDATE = enum.auto()
    SELECT = enum.auto()
    UNKNOWN = enum.auto()


@dataclass
class SQLResult:
    """Outcome of executing one statement."""

    type: SQLType = SQLType.UNKNOWN
    message: str = ""
    success: bool = False


@dataclass
class CreateTableColumn:
    """A column as written in a CREATE TABLE statement."""

    name: str
    type: str
    is_primary: bool = False


def parse_where_clause(where_clause: str) -> Optional[Tuple[str, Operator, str]]:
    """Split ``col op value`` into its parts, or return None."""
    match = _WHERE.search(where_clause)
    if match is None:
        return None
    return match.group(1), string_to_operator(match.group(2)), match.group(3)


def parse_values(values: str) -> List[str]:
    """Split a comma-separated value list; double quotes keep text together."""
    result: List[str] = []
    current: List[str] = []
    in_quotes = False
    for char in values:
        if char == '"':
            in_quotes = not in_quotes
            if not in_quotes:
                result.append("".join(current))
                current.clear()
        elif char == "," and not in_quotes:
            if current:
                result.append("".join(current))
                current.clear()
        elif not in_quotes and char in " \t":
            continue
        else:
            current.append(char)
    if current:
        result.append("".join(current))
    return result


def parse_column_defs(column_defs: str) -> List[CreateTableColumn]:
    """Extract ``name type [primary]`` column definitions."""
    return [
        CreateTableColumn(m.group(1), m.group(2), "primary" in m.group(0))
        for m in _COLUMN_DEF.finditer(column_defs)
    ]


def string_to_operator(op: str) -> Operator:
    """Map ``=``, ``<`` or ``>`` to an Operator; raise ValueError otherwise."""
    try:
        return Operator(op)
    except ValueError:
        raise ValueError(f"无效的操作符：{op}") from None


def string_to_data_type(type_name: str) -> DataType:
    """Map ``int`` or ``string`` (any case) to a DataType; raise ValueError otherwise."""
    lowered = type_name.lower()
    if lowered == "int":
        return DataType.INT
    if lowered == "string":
        return DataType.STRING
    raise ValueError(f"无效的数据类型：{type_name}")


def extract_quoted_string(text: str) -> str:
    """Strip one pair of surrounding double quotes, if present."""
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return text


def _is_ascii_letter(char: str) -> bool:
    return char.isascii() and char.isalpha()


def is_valid_identifier(identifier: str) -> bool:
    """True for an ASCII letter followed by letters, digits or underscores."""
    if not identifier or not _is_ascii_letter(identifier[0]):
        return False
    return all(
        (c.isascii() and c.isalnum()) or c == "_" for c in identifier
    )


class SQLParser:
    """Executes SQL statements against a DBManager."""

    def __init__(self, manager: DBManager) -> None:
        self.manager = manager

    def execute(self, sql: str) -> SQLResult:
        """Run one statement (without its trailing semicolon)."""
        statement = sql.strip(" \t\n\r")
        dispatch = (
            ("create database", self._create_database),
            ("drop database", self._drop_database),
            ("use", self._use),
            ("create table", self._create_table),
            ("drop table", self._drop_table),
            ("insert", self._insert),
            ("delete", self._delete),
            ("update", self._update),
            ("select", self._select),
        )
        for prefix, handler in dispatch:
            if statement.startswith(prefix):
                return handler(statement)
        return SQLResult(SQLType.UNKNOWN, "错误：未知的SQL语句", False)

    def _create_database(self, sql: str) -> SQLResult:
        kind = SQLType.CREATE_DATABASE
        match = _CREATE_DATABASE.search(sql)
        if match is None:
            return SQLResult(kind, "错误：CREATE DATABASE 语法错误", False)
        name = match.group(1)
        if not is_valid_identifier(name):
            return SQLResult(kind, "错误：无效的数据库名", False)
        if self.manager.create_database(name):
            return SQLResult(kind, f"数据库 {name} 创建成功", True)
        return SQLResult(kind, "错误：创建数据库失败，数据库可能已存在", False)

    def _drop_database(self, sql: str) -> SQLResult:
        kind = SQLType.DROP_DATABASE
        match = _DROP_DATABASE.search(sql)
        if match is None:
            return SQLResult(kind, "错误：DROP DATABASE 语法错误", False)
        name = match.group(1)
        if self.manager.drop_database(name):
            return SQLResult(kind, f"数据库 {name} 删除成功", True)
        return SQLResult(kind, "错误：删除数据库失败，数据库可能不存在", False)

    def _use(self, sql: str) -> SQLResult:
        kind = SQLType.USE_DATABASE
        match = _USE.search(sql)
        if match is None:
            return SQLResult(kind, "错误：USE 语法错误", False)
        name = match.group(1)
        if self.manager.use_database(name):
            return SQLResult(kind, f"数据库 {name} 切换成功", True)
        return SQLResult(kind, "错误：切换数据库失败，数据库可能不存在", False)

    def _create_table(self, sql: str) -> SQLResult:
        kind = SQLType.CREATE_TABLE
        match = _CREATE_TABLE.search(sql)
        if match is None:
            return SQLResult(kind, "错误：CREATE TABLE 语法错误", False)
        table_name, defs = match.group(1), match.group(2)
        if not is_valid_identifier(table_name):
            return SQLResult(kind, "错误：无效的表名", False)
        database = self.manager.current_database()
        if database is None:
            return SQLResult(kind, "错误：未选择数据库", False)
        parsed = parse_column_defs(defs)
        if not parsed:
            return SQLResult(kind, "错误：无效的列定义", False)
        columns: List[ColumnDef] = []
        for column in parsed:
            try:
                data_type = string_to_data_type(column.type)
            except ValueError:
                return SQLResult(kind, f"错误：无效的列类型：{column.type}", False)
            if not is_valid_identifier(column.name):
                return SQLResult(kind, f"错误：无效的列名：{column.name}", False)
            columns.append(ColumnDef(column.name, data_type, column.is_primary))
        if database.create_table(table_name, columns):
            return SQLResult(kind, f"表 {table_name} 创建成功", True)
        return SQLResult(kind, "错误：创建表失败，表可能已存在", False)

    def _drop_table(self, sql: str) -> SQLResult:
        kind = SQLType.DROP_TABLE
        match = _DROP_TABLE.search(sql)
        if match is None:
            return SQLResult(kind, "错误：DROP TABLE 语法错误", False)
        table_name = match.group(1)
        database = self.manager.current_database()
        if database is None:
            return SQLResult(kind, "错误：未选择数据库", False)
        if database.drop_table(table_name):
            return SQLResult(kind, f"表 {table_name} 删除成功", True)
        return SQLResult(kind, "错误：删除表失败，表可能不存在", False)

    def _insert(self, sql: str) -> SQLResult:
        kind = SQLType.INSERT
        match = _INSERT.search(sql)
        if match is None:
            return SQLResult(kind, "错误：INSERT 语法错误", False)
        table_name, value_text = match.group(1), match.group(2)
        database = self.manager.current_database()
        if database is None:
            return SQLResult(kind, "错误：未选择数据库", False)
        table = database.get_table(table_name)
        if table is None:
            return SQLResult(kind, f"错误：表 {table_name} 不存在", False)
        texts = parse_values(value_text)
        if not texts:
            return SQLResult(kind, "错误：无效的值列表", False)
        if len(texts) != len(table.columns):
            return SQLResult(kind, "错误：值的数量与列的数量不匹配", False)
        values = []
        for text, column in zip(texts, table.columns):
            try:
                values.append(string_to_value(text, column.type))
            except ValueError:
                return SQLResult(kind, f"错误：无效的值：{text}", False)
        if table.insert(values):
            return SQLResult(kind, "记录插入成功", True)
        return SQLResult(kind, "错误：插入记录失败，主键可能重复", False)

    def _resolve_where(self, table, where_clause: str, kind: SQLType):
        """Return ``(col, op, value)`` or an error SQLResult."""
        parsed = parse_where_clause(where_clause)
        if parsed is None:
            return SQLResult(kind, "错误：无效的 WHERE 子句", False)
        col_name, op, text = parsed
        position = table.column_index(col_name)
        if position is None:
            return SQLResult(kind, f"错误：列 {col_name} 不存在", False)
        try:
            value = string_to_value(text, table.columns[position].type)
        except ValueError:
            return SQLResult(kind, f"错误：无效的值：{text}", False)
        return col_name, op, value

    def _delete(self, sql: str) -> SQLResult:
        kind = SQLType.DELETE
        where_clause: Optional[str] = None
        match = _DELETE_WHERE.search(sql)
        if match is not None:
            table_name, where_clause = match.group(1), match.group(2)
        else:
            match = _DELETE.search(sql)
            if match is None:
                return SQLResult(kind, "错误：DELETE 语法错误", False)
            table_name = match.group(1)
        database = self.manager.current_database()
        if database is None:
            return SQLResult(kind, "错误：未选择数据库", False)
        table = database.get_table(table_name)
        if table is None:
            return SQLResult(kind, f"错误：表 {table_name} 不存在", False)
        if where_clause is not None:
            resolved = self._resolve_where(table, where_clause, kind)
            if isinstance(resolved, SQLResult):
                return resolved
            count = table.delete_where(*resolved)
        else:
            count = table.delete_where("", Operator.EQUAL, 0)
        return SQLResult(kind, f"已删除 {count} 条记录", True)

    def _update(self, sql: str) -> SQLResult:
        kind = SQLType.UPDATE
        match = _UPDATE.search(sql)
        if match is None:
            return SQLResult(kind, "错误：UPDATE 语法错误", False)
        table_name, set_col_name, set_text = match.group(1, 2, 3)
        where_clause = match.group(4) or ""
        database = self.manager.current_database()
        if database is None:
            return SQLResult(kind, "错误：未选择数据库", False)
        table = database.get_table(table_name)
        if table is None:
            return SQLResult(kind, f"错误：表 {table_name} 不存在", False)
        set_position = table.column_index(set_col_name)
        if set_position is None:
            return SQLResult(kind, f"错误：列 {set_col_name} 不存在", False)
        try:
            set_value = string_to_value(set_text, table.columns[set_position].type)
        except ValueError:
            return SQLResult(kind, f"错误：无效的值：{set_text}", False)
        if where_clause:
            resolved = self._resolve_where(table, where_clause, kind)
            if isinstance(resolved, SQLResult):
                return resolved
            where_col, op, where_value = resolved
            count = table.update_where(set_col_name, set_value, where_col, op, where_value)
        else:
            count = table.update_where(set_col_name, set_value, "", Operator.EQUAL, 0)
        return SQLResult(kind, f"已更新 {count} 条记录", True)

    def _select(self, sql: str) -> SQLResult:
        kind = SQLType.SELECT
        where_clause: Optional[str] = None
        match = _SELECT_WHERE.search(sql)
        if match is not None:
            select_col, table_name, where_clause = match.group(1, 2, 3)
        else:
            match = _SELECT.search(sql)
            if match is None:
                return SQLResult(kind, "错误：SELECT 语法错误", False)
            select_col, table_name = match.group(1, 2)
        database = self.manager.current_database()
        if database is None:
            return SQLResult(kind, "错误：未选择数据库", False)
        table = database.get_table(table_name)
        if table is None:
            return SQLResult(kind, f"错误：表 {table_name} 不存在", False)
        if where_clause is not None:
            resolved = self._resolve_where(table, where_clause, kind)
            if isinstance(resolved, SQLResult):
                return resolved
            col_name, op, value = resolved
            rows = table.select_where(col_name, op, value, select_col)
        else:
            rows = table.select_all(select_col)
        return SQLResult(kind, _format_rows(rows, select_col, table.columns), True)


def _format_rows(rows: List[Record], select_col: str, columns: List[ColumnDef]) -> str:
    lines = [f"查询结果：{len(rows)} 条记录"]
    if rows:
        if select_col == "*":
            lines.append("\t".join(column.name for column in columns))
            lines.append("\t".join(_SEPARATOR for _ in columns))
        else:
            lines.append(select_col)
            lines.append(_SEPARATOR)
        lines.extend("\t".join(str(value) for value in row) for row in rows)
    return "\n".join(lines) + "\n"