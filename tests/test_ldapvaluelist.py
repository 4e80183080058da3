import pytest

from arbor.errors import InvalidValueSet
from arbor.ldapvaluelist import LDAPValueList


def test_init():
    """ Test creating an LDAPValueList from a sequence. """
    lvl = LDAPValueList(("test1", b"test2", bytearray(b"test3")))
    assert lvl == ["test1", b"test2", bytearray(b"test3")]
    assert LDAPValueList() == []
    with pytest.raises(ValueError):
        LDAPValueList(("test1", "test1"))
    with pytest.raises(InvalidValueSet):
        LDAPValueList(("test1", 2))


def test_append():
    """ Test LDAPValueList's append method. """
    lvl = LDAPValueList()
    lvl.append("test")
    assert "test" in lvl
    with pytest.raises(ValueError):
        lvl.append("test")
    # Values are compared exactly.
    lvl.append("Test")
    lvl.append(b"test")
    assert lvl == ["test", "Test", b"test"]
    with pytest.raises(InvalidValueSet):
        lvl.append(None)


def test_insert():
    """ Test LDAPValueList's insert method. """
    lvl = LDAPValueList(("test1",))
    lvl.insert(0, "test2")
    assert lvl == ["test2", "test1"]
    with pytest.raises(ValueError):
        lvl.insert(2, "test2")
    with pytest.raises(InvalidValueSet):
        lvl.insert(0, 3.14)


def test_remove():
    """ Test LDAPValueList's remove method. """
    lvl = LDAPValueList(("test1", "test2"))
    lvl.remove("test1")
    assert lvl == ["test2"]
    with pytest.raises(ValueError):
        lvl.remove("test1")


def test_set():
    """ Test LDAPValueList's __setitem__ method. """
    lvl = LDAPValueList()
    lvl[0:2] = ("test1", "test2", "test3")
    lvl[1] = "test4"
    assert lvl == ["test1", "test4", "test3"]
    lvl[1] = "test4"
    assert lvl == ["test1", "test4", "test3"]
    with pytest.raises(ValueError):
        lvl[1] = "test3"
    with pytest.raises(ValueError):
        lvl[1:3] = ["test5", "test1"]
    with pytest.raises(InvalidValueSet):
        lvl[0] = 1
    del lvl[0:2]
    assert lvl == ["test3"]
    del lvl[0]
    assert lvl == []


def test_extend():
    """ Test LDAPValueList's extend method. """
    lvl = LDAPValueList(("test1",))
    lvl.extend(("test2", "test3"))
    assert lvl == ["test1", "test2", "test3"]
    with pytest.raises(ValueError):
        lvl.extend(("test4", "test1"))
    with pytest.raises(ValueError):
        lvl.extend(("test4", "test4"))
    assert lvl == ["test1", "test2", "test3"]


def test_pop():
    """ Test LDAPValueList's pop method. """
    lvl = LDAPValueList(("test1", "test2"))
    assert lvl.pop(0) == "test1"
    assert lvl == ["test2"]
    lvl.pop()
    assert lvl == []
    with pytest.raises(IndexError):
        lvl.pop()


def test_copy():
    """ Test LDAPValueList's copy method. """
    lvl1 = LDAPValueList(("test1", "test2"))
    lvl2 = lvl1.copy()
    assert lvl1 == lvl2
    assert isinstance(lvl2, LDAPValueList)
    lvl2.append("test3")
    assert lvl1 == ["test1", "test2"]


def test_add():
    """ Test adding list to an LDAPValueList. """
    lvl = LDAPValueList(("a", "b", "c"))
    assert lvl + ["d", "e"] == ["a", "b", "c", "d", "e"]
    with pytest.raises(TypeError):
        _ = lvl + "d"
    with pytest.raises(TypeError):
        lvl += "x"
    with pytest.raises(ValueError):
        _ = lvl + ["a"]
    lvl += ["d", "e"]
    assert lvl == ["a", "b", "c", "d", "e"]


def test_mul():
    """ Test multiplying an LDAPValueList. """
    lvl = LDAPValueList(("a", "b"))
    with pytest.raises(TypeError):
        _ = lvl * 3


def test_clear():
    """ Test setting LDAPValueList's clear method. """
    lvl = LDAPValueList(("a", "b"))
    lvl.append("c")
    lvl.clear()
    assert lvl == []


def test_no_extra_attrs():
    """ Test setting unknown attributes. """
    lvl = LDAPValueList(("a",))
    with pytest.raises(AttributeError):
        lvl.added = ["b"]
