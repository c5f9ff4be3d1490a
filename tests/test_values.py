import pytest
from sqlitelink import FieldValue, Integer, Real, Text, Null, FieldTypeError, BindValueError
from sqlitelink.native import SQLITE_INTEGER, SQLITE_FLOAT, SQLITE_TEXT, SQLITE_NULL


def test_type_tags():
    assert Integer(1).type == SQLITE_INTEGER
    assert Real(1.0).type == SQLITE_FLOAT
    assert Text("a").type == SQLITE_TEXT
    assert Null().type == SQLITE_NULL


def test_typed_extraction():
    assert Integer(5).as_int() == 5
    assert Real(2.5).as_float() == 2.5
    assert Text("abc").as_text() == "abc"
    assert Null().is_null
    assert Null().value is None
    assert not Text("").is_null


def test_mismatched_extraction_fails_fast():
    with pytest.raises(FieldTypeError):
        Text("5").as_int()
    with pytest.raises(FieldTypeError):
        Integer(5).as_float()
    with pytest.raises(TypeError):
        Null().as_text()
    with pytest.raises(FieldTypeError):
        Real(1.0).as_text()


def test_null_is_not_empty_text():
    assert Null() == Null()
    assert Null() != Text("")
    assert Integer(0) != Real(0.0)


def test_from_python():
    assert FieldValue.from_python(None) == Null()
    assert FieldValue.from_python(3) == Integer(3)
    assert FieldValue.from_python(True) == Integer(1)
    assert FieldValue.from_python(0.5) == Real(0.5)
    assert FieldValue.from_python("x") == Text("x")
    existing = Text("y")
    assert FieldValue.from_python(existing) is existing


def test_from_python_rejects_blobs():
    with pytest.raises(BindValueError):
        FieldValue.from_python(b"blob")


def test_integer_range():
    Integer(2 ** 63 - 1)
    Integer(-(2 ** 63))
    with pytest.raises(ValueError):
        Integer(2 ** 63)


def test_values_are_immutable_and_hashable():
    value = Text("a")
    with pytest.raises(AttributeError):
        value.value = "b"
    assert len({Integer(1), Integer(1), Null(), Null()}) == 2
