import struct

import pytest

from minidb.table import Table
from minidb.types import ColumnDef, DataType, Operator


def _columns():
    return [
        ColumnDef("id", DataType.INT, True),
        ColumnDef("name", DataType.STRING),
    ]


@pytest.fixture
def table(tmp_path):
    (tmp_path / "shop").mkdir()
    t = Table("users", "shop", _columns(), tmp_path)
    t.create_index()
    return t


@pytest.fixture
def filled(table):
    for row in ([1, "alice"], [2, "bob"], [3, "carol"]):
        assert table.insert(row)
    return table


def test_primary_key_column_detected(table):
    assert table.primary_key_column == 0
    assert table.column_index("name") == 1
    assert table.column_index("missing") is None


def test_no_primary_key(tmp_path):
    t = Table("t", "db", [ColumnDef("a", DataType.INT)], tmp_path)
    assert t.primary_key_column is None
    assert t.create_index() is False


def test_create_index_only_once(tmp_path):
    t = Table("t", "db", _columns(), tmp_path)
    assert t.create_index() is True
    assert t.create_index() is False


def test_insert_and_select_all(filled):
    assert filled.select_all("*") == [[1, "alice"], [2, "bob"], [3, "carol"]]
    assert filled.select_all("name") == [["alice"], ["bob"], ["carol"]]


def test_select_all_unknown_column(filled):
    assert filled.select_all("age") == []


def test_duplicate_primary_key_rejected(filled):
    assert filled.insert([2, "other"]) is False
    assert filled.select_all("name") == [["alice"], ["bob"], ["carol"]]


def test_duplicate_rejected_without_index(tmp_path):
    t = Table("t", "db", _columns(), tmp_path)
    assert t.insert([5, "x"]) is True
    assert t.insert([5, "y"]) is False


def test_wrong_arity_and_type_rejected(table):
    assert table.insert([1]) is False
    assert table.insert(["1", "alice"]) is False
    assert table.insert([1, 2]) is False
    assert table.select_all("*") == []


def test_select_where_operators(filled):
    assert filled.select_where("id", Operator.EQUAL, 2, "*") == [[2, "bob"]]
    assert filled.select_where("id", Operator.LESS_THAN, 3, "name") == [["alice"], ["bob"]]
    assert filled.select_where("id", Operator.GREATER_THAN, 1, "id") == [[2], [3]]
    assert filled.select_where("name", Operator.EQUAL, "carol", "id") == [[3]]


def test_select_where_unknown_columns(filled):
    assert filled.select_where("age", Operator.EQUAL, 1, "*") == []
    assert filled.select_where("id", Operator.EQUAL, 1, "age") == []


def test_select_where_type_mismatch_matches_nothing(filled):
    assert filled.select_where("name", Operator.EQUAL, 1, "*") == []


def test_delete_where(filled):
    assert filled.delete_where("id", Operator.LESS_THAN, 3) == 2
    assert filled.select_all("*") == [[3, "carol"]]


def test_delete_keeps_index_consistent(filled):
    assert filled.delete_where("id", Operator.EQUAL, 1) == 1
    assert filled.select_where("id", Operator.EQUAL, 3, "name") == [["carol"]]
    assert filled.delete_where("id", Operator.EQUAL, 3) == 1
    assert filled.select_all("*") == [[2, "bob"]]
    assert filled.insert([1, "alice"]) is True


def test_delete_unknown_column_deletes_nothing(filled):
    assert filled.delete_where("", Operator.EQUAL, 0) == 0
    assert filled.delete_where("id", Operator.EQUAL, 99) == 0
    assert len(filled.select_all("*")) == 3


def test_update_where(filled):
    assert filled.update_where("name", "bert", "id", Operator.EQUAL, 2) == 1
    assert filled.select_where("id", Operator.EQUAL, 2, "name") == [["bert"]]


def test_update_primary_key_reindexes(filled):
    assert filled.update_where("id", 10, "name", Operator.EQUAL, "alice") == 1
    assert filled.select_where("id", Operator.EQUAL, 10, "name") == [["alice"]]
    assert filled.select_where("id", Operator.EQUAL, 1, "name") == []


def test_update_rejects_bad_inputs(filled):
    assert filled.update_where("id", "x", "id", Operator.EQUAL, 1) == 0
    assert filled.update_where("name", "x", "", Operator.EQUAL, 0) == 0
    assert filled.update_where("age", 1, "id", Operator.EQUAL, 1) == 0
    assert filled.update_where("name", "x", "id", Operator.EQUAL, 42) == 0
    assert filled.select_all("name") == [["alice"], ["bob"], ["carol"]]


def test_save_and_load_round_trip(filled, tmp_path):
    assert filled.path.exists()
    assert filled.index_path.exists()
    loaded = Table("users", "shop", [], tmp_path)
    assert loaded.load_data() is True
    assert loaded.columns == _columns()
    assert loaded.primary_key_column == 0
    assert loaded.select_all("*") == filled.select_all("*")
    assert loaded.select_where("id", Operator.EQUAL, 3, "name") == [["carol"]]
    assert loaded.insert([3, "dup"]) is False


def test_round_trip_unicode_and_negative(tmp_path):
    t = Table("t", "db", _columns(), tmp_path)
    assert t.insert([-7, "héllo wörld"])
    loaded = Table("t", "db", [], tmp_path)
    assert loaded.load_data()
    assert loaded.select_all("*") == [[-7, "héllo wörld"]]


def test_file_starts_with_column_count(filled):
    data = filled.path.read_bytes()
    assert struct.unpack("<Q", data[:8]) == (len(_columns()),)
    assert struct.unpack("<Q", data[8:16]) == (len("id"),)
    assert data[16:18] == b"id"


def test_load_missing_file(tmp_path):
    t = Table("nothing", "db", [], tmp_path)
    assert t.load_data() is False


def test_load_truncated_file_raises(filled, tmp_path):
    data = filled.path.read_bytes()
    filled.path.write_bytes(data[:-3])
    loaded = Table("users", "shop", [], tmp_path)
    with pytest.raises(ValueError):
        loaded.load_data()


def test_save_without_database_directory_parent_fails(tmp_path):
    t = Table("t", "db", _columns(), tmp_path / "absent")
    with pytest.raises(OSError):
        t.save_data()