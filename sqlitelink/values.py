"""Typed column values.

A :class:`FieldValue` is one of exactly four variants, mirroring SQLite's
fundamental types minus BLOB: :class:`Integer`, :class:`Real`, :class:`Text`
and :class:`Null`. Values are frozen copies and stay valid after the
statement they were read from is closed.
"""

from __future__ import annotations

import dataclasses
from typing import Any, ClassVar, Optional

from .errors import BindValueError, FieldTypeError
from .native import (
    SQLITE_INTEGER, SQLITE_FLOAT, SQLITE_TEXT, SQLITE_NULL, INT64_MIN, INT64_MAX,
)


class FieldValue:
    type: ClassVar[int]
    value: Any

    @property
    def is_null(self) -> bool:
        return False

    def as_int(self) -> int:
        raise FieldTypeError(f"{type(self).__name__} value is not an integer")

    def as_float(self) -> float:
        raise FieldTypeError(f"{type(self).__name__} value is not a real")

    def as_text(self) -> str:
        raise FieldTypeError(f"{type(self).__name__} value is not text")

    @staticmethod
    def from_python(value: Any) -> "FieldValue":
        """Convert a Python value to the matching variant.

        ``bool`` is stored as an integer. Anything outside the supported set
        (bytes included) raises :class:`BindValueError`.
        """
        if isinstance(value, FieldValue):
            return value
        if value is None:
            return Null()
        if isinstance(value, (bool, int)):
            return Integer(int(value))
        if isinstance(value, float):
            return Real(value)
        if isinstance(value, str):
            return Text(value)
        raise BindValueError(f"Unsupported value type {type(value).__name__}")


@dataclasses.dataclass(frozen=True)
class Integer(FieldValue):
    type: ClassVar[int] = SQLITE_INTEGER
    value: int

    def __post_init__(self):
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise BindValueError(f"Integer {self.value} does not fit in 64 bits")

    def as_int(self) -> int:
        return self.value


@dataclasses.dataclass(frozen=True)
class Real(FieldValue):
    type: ClassVar[int] = SQLITE_FLOAT
    value: float

    def as_float(self) -> float:
        return self.value


@dataclasses.dataclass(frozen=True)
class Text(FieldValue):
    type: ClassVar[int] = SQLITE_TEXT
    value: str

    def as_text(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True)
class Null(FieldValue):
    type: ClassVar[int] = SQLITE_NULL
    value: Optional[Any] = dataclasses.field(default=None, init=False, repr=False)

    @property
    def is_null(self) -> bool:
        return True
