import pytest

from minidb.index import BTreeIndex
from minidb.types import Operator


@pytest.fixture
def index():
    idx = BTreeIndex()
    for row, key in enumerate([30, 10, 20]):
        idx.insert(key, row)
    return idx


def test_find_equal(index):
    assert index.find(10, Operator.EQUAL) == [1]
    assert index.find(99, Operator.EQUAL) == []


def test_insert_overwrites(index):
    index.insert(10, 7)
    assert index.find(10, Operator.EQUAL) == [7]
    assert len(index) == 3


def test_remove(index):
    assert index.remove(20) is True
    assert index.remove(20) is False
    assert index.find(20, Operator.EQUAL) == []
    assert len(index) == 2


def test_find_less_than_in_key_order(index):
    assert index.find(25, Operator.LESS_THAN) == [1, 2]


def test_find_greater_than_in_key_order(index):
    assert index.find(15, Operator.GREATER_THAN) == [2, 0]


def test_range_skips_other_types(index):
    index.insert("zz", 5)
    assert index.find(100, Operator.LESS_THAN) == [1, 2, 0]
    assert index.find("a", Operator.GREATER_THAN) == [5]


def test_wire_format_of_single_int_entry(tmp_path):
    idx = BTreeIndex()
    idx.insert(5, 2)
    path = tmp_path / "t.idx"
    idx.save(path)
    assert path.read_bytes() == (
        b"\x01\x00\x00\x00\x00\x00\x00\x00"
        b"\x00"
        b"\x05\x00\x00\x00"
        b"\x02\x00\x00\x00\x00\x00\x00\x00"
    )


def test_save_load_round_trip(tmp_path):
    idx = BTreeIndex()
    idx.insert(-3, 0)
    idx.insert("alice", 1)
    idx.insert("名字", 2)
    idx.insert(40, 3)
    path = tmp_path / "t.idx"
    idx.save(path)

    loaded = BTreeIndex()
    assert loaded.load(path) is True
    assert len(loaded) == 4
    for key, row in [(-3, 0), ("alice", 1), ("名字", 2), (40, 3)]:
        assert loaded.find(key, Operator.EQUAL) == [row]


def test_load_replaces_existing_entries(tmp_path):
    path = tmp_path / "t.idx"
    BTreeIndex().save(path)
    idx = BTreeIndex()
    idx.insert(1, 1)
    assert idx.load(path) is True
    assert len(idx) == 0


def test_load_missing_file_returns_false(tmp_path):
    idx = BTreeIndex()
    idx.insert(1, 1)
    assert idx.load(tmp_path / "missing.idx") is False
    assert idx.find(1, Operator.EQUAL) == [1]


def test_load_truncated_file_raises(tmp_path):
    idx = BTreeIndex()
    idx.insert("key", 1)
    path = tmp_path / "t.idx"
    idx.save(path)
    path.write_bytes(path.read_bytes()[:-3])
    with pytest.raises(ValueError):
        BTreeIndex().load(path)