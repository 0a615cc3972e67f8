# minidb

minidb is a small relational database that stores its data in files under a
data directory. You use it through an interactive shell that accepts a compact
SQL dialect.

On disk, each database is a subdirectory of the data directory and each table
is a binary `<table>.dat` file inside it. A table with a primary key also gets
a `<table>.idx` index file.

## Installation

```
pip install .
```

## The shell

```
minidb
minidb --data-dir /path/to/data
```

By default the shell keeps its data in `data`, relative to the current
directory, and creates that directory if it is missing. At startup it loads
every database it finds there.

A statement may span several lines. It runs once a line ends with `;`. The
prompt shows the database in use, for example `MiniDB [shop]> `.

Other commands:

- `clear` discards a statement that has only been partly typed.
- `exit` or `quit` leaves the shell. The shell also stops when its input ends.

On leaving, the shell writes a `metadata.json` file into each database
directory. This file lists the database name and its tables.

Because the shell reads standard input, you can also pipe a script into it:

```
minidb < script.sql
```

## The SQL dialect

Statements start with lower-case keywords.

- **Column types.** The types are `int` (32-bit) and `string`.
- **Primary keys.** A column followed by `primary` is the table's primary key. An insert with a duplicate key is refused.
- **String values.** In `insert`, string values are written in double quotes.

```
create database shop;
use shop;
create table items (id int primary, name string, qty int);
insert items values (1, "apple", 10);
insert items values (2, "pear", 4);
select * from items;
select name from items where qty > 5;
update items set qty = 7 where id = 2;
delete items where id = 1;
delete items;
drop table items;
drop database shop;
```

A `where` clause holds a single condition of the form `column op value`, where
`op` is `=`, `<` or `>`.

- Integers compare numerically.
- Strings compare lexicographically.

An `update` sets one column at a time. A `select` returns either every column
(`*`) or a single named column.

Each statement prints a message:

- a confirmation, such as `记录插入成功`;
- a count of affected rows;
- a tab-separated result table;
- or an error beginning with `错误：`.

## Using it from Python

```python
from minidb.manager import DBManager
from minidb.parser import SQLParser

manager = DBManager("data")
manager.init_data_directory()
manager.load_databases()

parser = SQLParser(manager)
result = parser.execute("create database shop")
print(result.success, result.message)
```

`SQLParser.execute` takes a statement without its trailing semicolon. It
returns an `SQLResult`, which has these fields:

- `type`: an `SQLType`.
- `message`: the text the shell would print.
- `success`: whether the statement succeeded.

Lower-level pieces are also available:

- `minidb.manager.DBManager`: creates, drops and selects databases. `save_all` writes their metadata.
- `minidb.database.Database`: creates, drops, loads and looks up tables.
- `minidb.table.Table`: `insert`, `delete_where`, `update_where`, `select_where`, `select_all`, `load_data` and `save_data`.
- `minidb.index.BTreeIndex`: the primary-key index, with `insert`, `remove`, `find`, `save` and `load`.
- `minidb.parser`: the parsing helpers, such as `parse_values`, `parse_where_clause`, `parse_column_defs` and `is_valid_identifier`.
- `minidb.types`: `DataType`, `Operator`, `ColumnDef`, `string_to_value`, `value_to_string` and `compare_values`.
- `minidb.cli`: `run(manager, lines, out)` drives the shell loop over any iterable of lines.

## What it does not do

minidb has no network server. It runs in one process over a local directory.

It does not support:

- transactions
- joins
- multi-condition `where` clauses
- column lists in `insert`
- more than one column in `select` (other than `*`)

## Running the tests

```
pip install .[test]
pytest
```