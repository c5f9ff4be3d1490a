from __future__ import annotations

import ctypes
import enum
import logging
from typing import Any, List, Optional

from .errors import BindValueError, SQLiteError, StatementClosed, sqlite_error
from .handle import HandleGuard
from .native import (
    load_library,
    SQLITE_OK, SQLITE_ROW, SQLITE_DONE,
    SQLITE_INTEGER, SQLITE_FLOAT, SQLITE_TEXT, SQLITE_BLOB, SQLITE_NULL,
    SQLITE_TRANSIENT, INT32_MIN, INT32_MAX,
)
from .values import FieldValue, Integer, Real, Text, Null

logger = logging.getLogger(__name__)


class StatementState(enum.Enum):
    OPEN = "open"
    BOUND = "bound"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    CLOSED = "closed"


_TERMINAL_STATES = (StatementState.COMMITTED, StatementState.ROLLED_BACK, StatementState.CLOSED)


class PreparedStatement:
    """A compiled statement executed inside the transaction its Connection opened.

    Created by :meth:`Connection.prepare`. Each :meth:`bind` call applies one
    row and steps the statement; :meth:`commit` ends the transaction. Any
    failed step rolls the transaction back and closes the statement.

    The statement keeps its Connection reachable but never releases the
    connection handle; the Connection closes every statement it created
    before releasing its own handle.
    """

    # Whether the owning Connection opened a transaction for this statement.
    _transactional = True

    def __init__(self, conn, sql: str):
        self._lib = load_library()
        self._conn = conn
        self.sql = sql
        self._state = StatementState.OPEN

        sql_bytes = sql.encode("utf-8")
        buf = ctypes.create_string_buffer(sql_bytes)
        stmt_ptr = ctypes.c_void_p()
        tail_ptr = ctypes.c_void_p()
        db = conn.get_handle()
        rc = self._lib.sqlite3_prepare_v2(
            db,
            buf,
            len(sql_bytes),
            ctypes.byref(stmt_ptr),
            ctypes.byref(tail_ptr),
        )
        if rc != SQLITE_OK:
            # prepare_v2 leaves the out handle NULL on failure
            raise sqlite_error(
                rc,
                self._lib.sqlite3_extended_errcode(db),
                _decode(self._lib.sqlite3_errmsg(db)),
                sql=sql,
            )
        if not stmt_ptr.value:
            raise BindValueError("No SQL statement to prepare")

        self._guard = HandleGuard(stmt_ptr.value, self._lib.sqlite3_finalize, StatementClosed)

        # Only the first statement of ``sql`` is compiled.
        if tail_ptr.value:
            offset = tail_ptr.value - ctypes.addressof(buf)
        else:
            offset = len(sql_bytes)
        self._tail = sql_bytes[offset:].decode("utf-8", errors="replace")
        if self._tail.strip():
            logger.warning("Ignoring SQL after the first statement: %r", self._tail)

        self.param_count = self._lib.sqlite3_bind_parameter_count(stmt_ptr.value)

    # Handle access

    def get_handle(self):
        """Raw ``sqlite3_stmt*``; raises :class:`StatementClosed` once released."""
        return self._guard.get()

    @property
    def connection(self):
        return self._conn

    @property
    def closed(self) -> bool:
        return self._guard.closed

    @property
    def state(self) -> StatementState:
        if self._guard.closed and self._state not in _TERMINAL_STATES:
            # Released through another copy or by Connection.close()
            return StatementState.CLOSED
        return self._state

    # Binding

    def bind(self, *values: Any) -> None:
        """Bind one row of values to the placeholders (zero-indexed) and step.

        Raises :class:`BindValueError` if more values than placeholders are
        given or a value has an unsupported type; nothing is bound in that case.
        Placeholders without a value are bound to NULL.
        """
        stmt = self.get_handle()
        fields = self._check_values(values)
        self._lib.sqlite3_clear_bindings(stmt)
        for i, field in enumerate(fields):
            self._bind_field(stmt, i, field, values)
        self._state = StatementState.BOUND
        self.next()

    def bind_at(self, index: int, value: Any) -> None:
        """Bind a single value at a zero-based position without stepping."""
        stmt = self.get_handle()
        if not 0 <= index < self.param_count:
            raise BindValueError(
                f"Parameter index {index} out of range; statement has {self.param_count} parameter(s)"
            )
        field = FieldValue.from_python(value)
        self._bind_field(stmt, index, field, (value,))
        if self._state is StatementState.OPEN:
            self._state = StatementState.BOUND

    def _check_values(self, values):
        if len(values) > self.param_count:
            raise BindValueError(
                f"Too many arguments to bind(): {self.param_count} expected, {len(values)} specified"
            )
        return [FieldValue.from_python(v) for v in values]

    def _bind_field(self, stmt, i, field, values):
        idx = i + 1
        if field.type == SQLITE_NULL:
            rc = self._lib.sqlite3_bind_null(stmt, idx)
        elif field.type == SQLITE_INTEGER:
            if INT32_MIN <= field.value <= INT32_MAX:
                rc = self._lib.sqlite3_bind_int(stmt, idx, field.value)
            else:
                rc = self._lib.sqlite3_bind_int64(stmt, idx, field.value)
        elif field.type == SQLITE_FLOAT:
            rc = self._lib.sqlite3_bind_double(stmt, idx, field.value)
        else:
            b = field.value.encode("utf-8")
            rc = self._lib.sqlite3_bind_text(stmt, idx, b, len(b), SQLITE_TRANSIENT)

        if rc != SQLITE_OK:
            db = self._conn.get_handle()
            raise sqlite_error(
                rc,
                self._lib.sqlite3_extended_errcode(db),
                _decode(self._lib.sqlite3_errmsg(db)),
                sql=self.sql,
                params=values,
            )

    # Execution

    def next(self) -> None:
        """Execute the statement with the current bindings.

        Succeeds when the step yields a row or completes and the reset after it
        succeeds. Otherwise the transaction is rolled back, this statement is
        closed and :class:`SQLiteError` is raised.
        """
        stmt = self.get_handle()
        rc = self._lib.sqlite3_step(stmt)
        if rc in (SQLITE_ROW, SQLITE_DONE):
            rc = self._lib.sqlite3_reset(stmt)
            if rc == SQLITE_OK:
                return
        self._fail(rc)

    def _fail(self, rc):
        db = self._conn.get_handle()
        ext_rc = self._lib.sqlite3_extended_errcode(db)
        native_message = _decode(self._lib.sqlite3_errmsg(db))
        self._lib.sqlite3_reset(self._guard.get())
        if self._transactional:
            # Rollback transaction on failure
            try:
                self._conn.exec("ROLLBACK")
            except SQLiteError as e:
                # No transaction was active
                logger.debug("ROLLBACK after failed step was rejected: %s", e.native_message)
            else:
                logger.debug("Rolled back transaction after failed step of %r", self.sql)
        self._guard.release()
        self._state = StatementState.ROLLED_BACK if self._transactional else StatementState.CLOSED
        raise sqlite_error(rc, ext_rc, native_message, sql=self.sql)

    def commit(self) -> None:
        """End the transaction opened by :meth:`Connection.prepare` and close."""
        self.get_handle()
        if self._transactional:
            self._conn.exec("END TRANSACTION")
        self._guard.release()
        self._state = StatementState.COMMITTED if self._transactional else StatementState.CLOSED

    def rollback(self) -> None:
        """Discard everything applied since :meth:`Connection.prepare` and close."""
        self.get_handle()
        if self._transactional:
            self._conn.exec("ROLLBACK")
        self._guard.release()
        self._state = StatementState.ROLLED_BACK if self._transactional else StatementState.CLOSED

    def close(self) -> None:
        """Release the statement handle. Never raises; repeated calls do nothing."""
        self._guard.release()
        if self._state not in _TERMINAL_STATES:
            self._state = StatementState.CLOSED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.closed:
            if exc_type:
                self.rollback()
            else:
                self.commit()
        self.close()

    def __repr__(self):
        return f"<{type(self).__name__} {self.state.value} sql={self.sql!r}>"


class ResultSet(PreparedStatement):
    """A read-mode statement created by :meth:`Connection.query`.

    No transaction is opened. Rows are pulled with :meth:`next` and read with
    :meth:`row` (text) or :meth:`typed_row` (:class:`FieldValue`); iterating
    the object yields :meth:`row` lists.
    """

    _transactional = False

    def __init__(self, conn, sql: str):
        super().__init__(conn, sql)
        self._exhausted = False
        # Storage classes of the current row, read before any text conversion
        self._row_types: Optional[List[int]] = None

    def bind(self, *values: Any) -> None:
        """Bind query parameters and rewind the cursor; does not step."""
        stmt = self.get_handle()
        fields = self._check_values(values)
        self._lib.sqlite3_reset(stmt)
        self._lib.sqlite3_clear_bindings(stmt)
        for i, field in enumerate(fields):
            self._bind_field(stmt, i, field, values)
        self._exhausted = False
        self._row_types = None
        self._state = StatementState.BOUND

    def bind_at(self, index: int, value: Any) -> None:
        """Bind a single query parameter; the cursor is rewound first."""
        self._lib.sqlite3_reset(self.get_handle())
        self._exhausted = False
        self._row_types = None
        super().bind_at(index, value)

    def column_count(self) -> int:
        return self._lib.sqlite3_column_count(self.get_handle())

    def column_names(self) -> List[str]:
        stmt = self.get_handle()
        return [
            _decode(self._lib.sqlite3_column_name(stmt, i)) or ""
            for i in range(self._lib.sqlite3_column_count(stmt))
        ]

    def next(self, row: Optional[list] = None) -> bool:
        """Advance to the next row.

        Returns False once the results are exhausted, and keeps returning False
        without touching the engine. If ``row`` is given, it is filled with
        :meth:`row` when a row is available and left alone otherwise.
        """
        stmt = self.get_handle()
        if self._exhausted:
            return False
        rc = self._lib.sqlite3_step(stmt)
        self._row_types = None
        if rc == SQLITE_ROW:
            self._row_types = [
                self._lib.sqlite3_column_type(stmt, i)
                for i in range(self._lib.sqlite3_column_count(stmt))
            ]
            if row is not None:
                row[:] = self.row()
            return True
        if rc == SQLITE_DONE:
            self._exhausted = True
            return False
        self._fail(rc)

    def next_into(self, row: list) -> bool:
        return self.next(row)

    def row(self) -> List[str]:
        """Text of every column in the current row; NULL becomes ``""``."""
        stmt = self.get_handle()
        return [
            self._column_text(stmt, i)
            for i in range(self._lib.sqlite3_column_count(stmt))
        ]

    def typed_row(self) -> List[FieldValue]:
        """Typed values of the current row. BLOB columns are left out.

        Column types are those reported when the row was stepped, so an
        earlier :meth:`row` call does not change them.
        """
        stmt = self.get_handle()
        kinds = self._row_types
        if kinds is None:
            kinds = [
                self._lib.sqlite3_column_type(stmt, i)
                for i in range(self._lib.sqlite3_column_count(stmt))
            ]
        out = []
        for i, kind in enumerate(kinds):
            if kind == SQLITE_INTEGER:
                out.append(Integer(self._lib.sqlite3_column_int64(stmt, i)))
            elif kind == SQLITE_FLOAT:
                out.append(Real(self._lib.sqlite3_column_double(stmt, i)))
            elif kind == SQLITE_TEXT:
                out.append(Text(self._column_text(stmt, i)))
            elif kind == SQLITE_NULL:
                out.append(Null())
            elif kind == SQLITE_BLOB:
                continue
        return out

    def _column_text(self, stmt, i):
        ptr = self._lib.sqlite3_column_text(stmt, i)
        if not ptr:
            return ""
        length = self._lib.sqlite3_column_bytes(stmt, i)
        return ctypes.string_at(ptr, length).decode("utf-8", errors="replace")

    def __iter__(self):
        while self.next():
            yield self.row()


def _decode(raw):
    return raw.decode("utf-8", errors="replace") if raw else None
