from __future__ import annotations

import ctypes
import logging
import weakref
from typing import List, Optional

from .errors import DatabaseClosed, Error, OpenError, SQLiteError, sqlite_error
from .handle import HandleGuard
from .native import (
    load_library,
    SQLITE_OK, SQLITE_OPEN_READONLY, SQLITE_OPEN_READWRITE, SQLITE_OPEN_CREATE, SQLITE_OPEN_URI,
)
from .statement import PreparedStatement, ResultSet

logger = logging.getLogger(__name__)


class Connection:
    """Connection to a SQLite database.

    The connection exclusively owns its ``sqlite3*`` handle. It remembers every
    statement created from it, in creation order, so that :meth:`close` can
    release them before the database handle they depend on.
    """

    def __init__(self, path: str, *, readonly: bool = False, uri: bool = False,
                 busy_timeout: Optional[int] = None):
        self._lib = load_library()
        self.path = path
        self.last_error: Optional[str] = None
        self._stmts: List[weakref.ref] = []

        flags = SQLITE_OPEN_READONLY if readonly else SQLITE_OPEN_READWRITE | SQLITE_OPEN_CREATE
        if uri:
            flags |= SQLITE_OPEN_URI

        db = ctypes.c_void_p()
        rc = self._lib.sqlite3_open_v2(path.encode("utf-8"), ctypes.byref(db), flags, None)
        if rc != SQLITE_OK:
            msg = self._lib.sqlite3_errmsg(db) if db.value else None
            msg_str = msg.decode("utf-8", errors="replace") if msg else f"Code {rc}"
            # A handle is usually allocated even when opening fails
            if db.value:
                self._lib.sqlite3_close_v2(db)
            raise OpenError(f"Failed to open database {path!r}: {msg_str}")

        self._guard = HandleGuard(db.value, self._lib.sqlite3_close_v2, DatabaseClosed)
        if busy_timeout is not None:
            self._lib.sqlite3_busy_timeout(db.value, int(busy_timeout))
        logger.debug("Opened database %s", path)

    def get_handle(self):
        """Raw ``sqlite3*``; raises :class:`DatabaseClosed` after :meth:`close`."""
        return self._guard.get()

    @property
    def closed(self) -> bool:
        return self._guard.closed

    @property
    def in_transaction(self) -> bool:
        return not self._lib.sqlite3_get_autocommit(self.get_handle())

    def exec(self, sql: str) -> None:
        """Execute one or more statements that return no rows."""
        db = self.get_handle()
        err = ctypes.c_void_p()
        rc = self._lib.sqlite3_exec(db, sql.encode("utf-8"), None, None, ctypes.byref(err))
        if err.value:
            try:
                self.last_error = ctypes.string_at(err.value).decode("utf-8", errors="replace")
            finally:
                self._lib.sqlite3_free(err)
        else:
            self.last_error = None

        if rc != SQLITE_OK:
            raise sqlite_error(rc, self._lib.sqlite3_extended_errcode(db), self.last_error, sql=sql)

    def prepare(self, sql: str) -> PreparedStatement:
        """Begin a transaction and compile ``sql`` for repeated :meth:`PreparedStatement.bind`."""
        self.exec("BEGIN TRANSACTION")
        try:
            stmt = PreparedStatement(self, sql)
        except Error:
            self._rollback_quietly()
            raise
        self._track(stmt)
        return stmt

    def query(self, sql: str) -> ResultSet:
        """Compile a read-only query. No transaction is opened."""
        rs = ResultSet(self, sql)
        self._track(rs)
        return rs

    def changes(self) -> int:
        """Rows modified by the most recently completed INSERT, UPDATE or DELETE."""
        return self._lib.sqlite3_changes(self.get_handle())

    def tables(self) -> List[str]:
        rs = self.query(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        try:
            return [row[0] for row in rs]
        finally:
            rs.close()

    def _track(self, stmt):
        # Drop entries whose statement handle is gone already
        live = []
        for ref in self._stmts:
            guard = ref()
            if guard is not None and not guard.closed:
                live.append(ref)
        self._stmts = live
        self._stmts.append(weakref.ref(stmt._guard))

    def _rollback_quietly(self):
        try:
            self.exec("ROLLBACK")
        except SQLiteError as e:
            logger.debug("ROLLBACK rejected: %s", e.native_message)

    def close(self) -> None:
        """Close every statement created from this connection, then the connection.

        Using the connection or any of its statements afterwards raises
        :class:`DatabaseClosed` or :class:`StatementClosed`. Never raises;
        calling it again does nothing.
        """
        stmts, self._stmts = self._stmts, []
        for ref in stmts:
            guard = ref()
            if guard is not None:
                guard.release()
        if not self._guard.closed:
            self._guard.release()
            logger.debug("Closed database %s", self.path)

    def __del__(self):
        # Only reached if __init__ got as far as creating the guard
        if "_guard" in self.__dict__:
            self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        state = "closed" if self.closed else "open"
        return f"<Connection {state} path={self.path!r}>"


def connect(path: str, **kwargs) -> Connection:
    """Open ``path`` (a file name, ``":memory:"`` or, with ``uri=True``, a ``file:`` URI)."""
    return Connection(path, **kwargs)
