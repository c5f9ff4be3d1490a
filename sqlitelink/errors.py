import json

from .native import (
    SQLITE_ERROR, SQLITE_BUSY, SQLITE_LOCKED, SQLITE_READONLY, SQLITE_CONSTRAINT,
    SQLITE_MISMATCH, SQLITE_MISUSE, SQLITE_RANGE,
    SQLITE_CONSTRAINT_CHECK, SQLITE_CONSTRAINT_FOREIGNKEY, SQLITE_CONSTRAINT_NOTNULL,
    SQLITE_CONSTRAINT_PRIMARYKEY, SQLITE_CONSTRAINT_UNIQUE,
)

# Exceptions
class Error(Exception):
    pass

class OpenError(Error):
    """The store at the given path could not be created or opened."""

class ResourceClosed(Error):
    pass

class DatabaseClosed(ResourceClosed):
    def __init__(self, msg="Attempted operation on a closed database."):
        super().__init__(msg)

class StatementClosed(ResourceClosed):
    def __init__(self, msg="Attempted operation on a closed statement."):
        super().__init__(msg)

class BindValueError(Error, ValueError):
    """The caller supplied arguments of the wrong shape or type."""

    def __init__(self, msg="Invalid value or value(s)."):
        super().__init__("[Value Error] " + msg)

class FieldTypeError(Error, TypeError):
    pass

class SQLiteError(Error):
    """Raised when the engine rejects a statement.

    ``code`` and ``extended_code`` are the native result codes, ``native_message``
    is whatever ``sqlite3_errmsg``/``sqlite3_exec`` reported.
    """

    def __init__(self, msg, code=None, extended_code=None, native_message=None):
        super().__init__("[SQLite Error] " + msg)
        self.code = code
        self.extended_code = extended_code
        self.native_message = native_message


# Map error codes to error messages
SQLITE_ERROR_MSG = {
    SQLITE_ERROR: "SQLITE_ERROR: Generic SQLite Error",
    SQLITE_BUSY: "SQLITE_BUSY: The database file is locked",
    SQLITE_LOCKED: "SQLITE_LOCKED: A table in the database is locked",
    SQLITE_READONLY: "SQLITE_READONLY: Attempt to write a readonly database",
    SQLITE_CONSTRAINT: "SQLITE_CONSTRAINT: SQL constraint violated",
    SQLITE_MISMATCH: "SQLITE_MISMATCH: Data type mismatch",
    SQLITE_MISUSE: "SQLITE_MISUSE: Library used incorrectly",
    SQLITE_RANGE: "SQLITE_RANGE: Bind parameter index out of range",
}

SQLITE_EXT_ERROR_MSG = {
    SQLITE_CONSTRAINT_CHECK: "SQLITE_CONSTRAINT_CHECK: Check constraint failed",
    SQLITE_CONSTRAINT_FOREIGNKEY: "SQLITE_CONSTRAINT_FOREIGNKEY: Foreign key constraint failed",
    SQLITE_CONSTRAINT_NOTNULL: "SQLITE_CONSTRAINT_NOTNULL: Not null constraint failed",
    SQLITE_CONSTRAINT_PRIMARYKEY: "SQLITE_CONSTRAINT_PRIMARYKEY: Primary key constraint failed",
    SQLITE_CONSTRAINT_UNIQUE: "SQLITE_CONSTRAINT_UNIQUE: Unique constraint failed",
}


def describe_error(code, extended_code=None):
    """Resolve native result codes to a message.

    The extended table is only consulted once the primary code is known;
    unknown primary codes degrade to ``"Code {n}"``.
    """
    if code in SQLITE_ERROR_MSG:
        if extended_code in SQLITE_EXT_ERROR_MSG:
            return SQLITE_EXT_ERROR_MSG[extended_code]
        return SQLITE_ERROR_MSG[code]
    return f"Code {code}"


def _format_value_for_error(v, *, max_str=200):
    if v is None or isinstance(v, (bool, int, float)):
        return v
    if isinstance(v, str):
        if len(v) <= max_str:
            return v
        return v[:max_str] + "…"
    # Fall back to capped repr
    s = repr(v)
    if len(s) <= max_str:
        return s
    return s[:max_str] + "…"


def _format_params_for_error(params, *, max_items=50):
    if params is None:
        return None
    seq = list(params)
    if len(seq) > max_items:
        seq = seq[:max_items] + ["<truncated>"]
    return [_format_value_for_error(v) for v in seq]


def sqlite_error(code, extended_code=None, native_message=None, *, sql=None, params=None):
    """Build an :class:`SQLiteError` annotated with the failing SQL and parameters."""
    msg = describe_error(code, extended_code)
    ctx = {
        "native_code": int(code),
        "extended_code": None if extended_code is None else int(extended_code),
        "native_message": native_message,
    }
    if sql is not None:
        ctx["sql"] = sql
        ctx["params"] = _format_params_for_error(params)
    msg = msg + "\nContext: " + json.dumps(ctx, ensure_ascii=False)
    return SQLiteError(msg, code=code, extended_code=extended_code, native_message=native_message)
