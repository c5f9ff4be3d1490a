from .native import load_library, sqlite_version, SQLITE_ROW, SQLITE_DONE
from .errors import (
    Error, OpenError, ResourceClosed, DatabaseClosed, StatementClosed,
    BindValueError, FieldTypeError, SQLiteError,
    SQLITE_ERROR_MSG, SQLITE_EXT_ERROR_MSG, describe_error,
)
from .handle import HandleGuard
from .values import FieldValue, Integer, Real, Text, Null
from .statement import PreparedStatement, ResultSet, StatementState
from .connection import Connection, connect

__all__ = [
    "connect", "Connection", "PreparedStatement", "ResultSet", "StatementState",
    "HandleGuard", "FieldValue", "Integer", "Real", "Text", "Null",
    "Error", "OpenError", "ResourceClosed", "DatabaseClosed", "StatementClosed",
    "BindValueError", "FieldTypeError", "SQLiteError",
    "SQLITE_ERROR_MSG", "SQLITE_EXT_ERROR_MSG", "describe_error",
    "load_library", "sqlite_version", "SQLITE_ROW", "SQLITE_DONE",
]
