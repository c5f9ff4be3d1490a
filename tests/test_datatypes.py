import pytest
import sqlitelink
from sqlitelink import Integer, Real, Text, Null


def _first(conn, sql):
    rs = conn.query(sql)
    assert rs.next()
    return rs


def test_null_round_trip(conn):
    conn.exec("CREATE TABLE t_null (id INT, a TEXT, b INT)")
    stmt = conn.prepare("INSERT INTO t_null VALUES (?, ?, ?)")
    stmt.bind(1, None, None)
    stmt.bind(2, "", 0)
    stmt.commit()

    rs = conn.query("SELECT a, b FROM t_null ORDER BY id")
    assert rs.next()
    assert rs.row() == ["", ""]
    assert rs.typed_row() == [Null(), Null()]

    assert rs.next()
    assert rs.row() == ["", "0"]
    assert rs.typed_row() == [Text(""), Integer(0)]
    assert rs.typed_row()[0] != Null()


def test_trailing_parameters_bind_null(conn):
    conn.exec("CREATE TABLE t (a TEXT, b INT)")
    stmt = conn.prepare("INSERT INTO t VALUES (?, ?)")
    stmt.bind("first", 1)
    stmt.bind("second")
    stmt.commit()

    rs = conn.query("SELECT b FROM t WHERE a = 'second'")
    assert rs.next()
    assert rs.typed_row() == [Null()]


def test_integers(conn):
    conn.exec("CREATE TABLE t_int (id INT, v INT)")
    values = [0, 1, -1, 2 ** 31 - 1, -(2 ** 31), 2 ** 40, 2 ** 63 - 1, -(2 ** 63)]
    stmt = conn.prepare("INSERT INTO t_int VALUES (?, ?)")
    for i, v in enumerate(values):
        stmt.bind(i, v)
    stmt.commit()

    rs = conn.query("SELECT v FROM t_int ORDER BY id")
    got = []
    while rs.next():
        typed = rs.typed_row()
        assert rs.row() == [str(typed[0].as_int())]
        got.append(typed[0].as_int())
    assert got == values


def test_bool_is_stored_as_integer(conn):
    conn.exec("CREATE TABLE t (v INT)")
    stmt = conn.prepare("INSERT INTO t VALUES (?)")
    stmt.bind(True)
    stmt.bind(False)
    stmt.commit()

    assert list(conn.query("SELECT v FROM t")) == [["1"], ["0"]]


def test_float64(conn):
    conn.exec("CREATE TABLE t_float (id INT, v REAL)")
    values = [0.0, 1.0, -1.0, 3.141592653589793, 1.7976931348623157e+308, 5e-324]
    stmt = conn.prepare("INSERT INTO t_float VALUES (?, ?)")
    for i, v in enumerate(values):
        stmt.bind(i, v)
    stmt.commit()

    rs = conn.query("SELECT v FROM t_float ORDER BY id")
    got = []
    while rs.next():
        (field,) = rs.typed_row()
        assert isinstance(field, Real)
        got.append(field.as_float())
    assert got == values


def test_float_text(conn):
    rs = _first(conn, "SELECT 1.5, 2")
    assert rs.row() == ["1.5", "2"]
    assert rs.typed_row() == [Real(1.5), Integer(2)]


def test_unicode_text(conn):
    conn.exec("CREATE TABLE t (v TEXT)")
    values = ["héllo", "日本語", "emoji \U0001F600", "tab\tnewline\n", "nul\x00inside"]
    stmt = conn.prepare("INSERT INTO t VALUES (?)")
    for v in values:
        stmt.bind(v)
    stmt.commit()

    assert [row[0] for row in conn.query("SELECT v FROM t")] == values


def test_blob_columns_are_skipped_in_typed_row(conn):
    conn.exec("CREATE TABLE t (id INT, data BLOB, name TEXT)")
    conn.exec("INSERT INTO t VALUES (1, x'DEADBEEF', 'z')")

    rs = _first(conn, "SELECT id, data, name FROM t")
    assert rs.typed_row() == [Integer(1), Text("z")]
    assert len(rs.row()) == 3


def test_field_values_outlive_statement(conn):
    rs = _first(conn, "SELECT 'kept', 42")
    values = rs.typed_row()
    rs.close()
    conn.close()
    assert values == [Text("kept"), Integer(42)]


def test_bind_field_values_directly(conn):
    conn.exec("CREATE TABLE t (a TEXT, b INT, c REAL, d TEXT)")
    stmt = conn.prepare("INSERT INTO t VALUES (?, ?, ?, ?)")
    stmt.bind(Text("x"), Integer(5), Real(0.25), Null())
    stmt.commit()

    rs = _first(conn, "SELECT * FROM t")
    assert rs.typed_row() == [Text("x"), Integer(5), Real(0.25), Null()]


@pytest.mark.parametrize("value", [b"\x00\x01", bytearray(b"x"), object(), 2 ** 63, -(2 ** 63) - 1])
def test_unsupported_values_are_rejected(conn, value):
    conn.exec("CREATE TABLE t (a, b)")
    stmt = conn.prepare("INSERT INTO t VALUES (?, ?)")
    with pytest.raises(sqlitelink.BindValueError):
        stmt.bind("first", value)
    stmt.commit()

    assert list(conn.query("SELECT * FROM t")) == []


def test_typed_row_after_text_row(conn):
    rs = _first(conn, "SELECT 5, 2.5, '7', NULL")
    assert rs.row() == ["5", "2.5", "7", ""]
    assert rs.typed_row() == [Integer(5), Real(2.5), Text("7"), Null()]

    row = []
    rs = conn.query("SELECT 5, 2.5")
    assert rs.next(row)
    assert row == ["5", "2.5"]
    assert rs.typed_row() == [Integer(5), Real(2.5)]
