"""
Tagged outcomes for store, compiler and validation calls.

Business conditions (missing ids, duplicates, bad input) travel back to the
router as values instead of exceptions. The router maps each ErrorKind to a
status code through a single table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INTERNAL = "internal"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying a kind and a human-readable detail."""

    kind: ErrorKind
    detail: str

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Ok[T], Err]


def not_found(detail: str) -> Err:
    return Err(ErrorKind.NOT_FOUND, detail)


def already_exists(detail: str) -> Err:
    return Err(ErrorKind.ALREADY_EXISTS, detail)


def invalid(detail: str) -> Err:
    return Err(ErrorKind.VALIDATION, detail)


def internal(detail: str) -> Err:
    return Err(ErrorKind.INTERNAL, detail)
