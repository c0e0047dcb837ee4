# src/dispatch_relay/core/results.py

"""
Result values for operations whose "did not happen" outcome is not an error.

- Ok(value): the operation produced a value (which may itself be falsy)
- Exhausted(attempts): every retry was used without success
- TimedOut(elapsed): a wall-clock ceiling passed first
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(slots=True, frozen=True)
class Exhausted:
    attempts: int


@dataclass(slots=True, frozen=True)
class TimedOut:
    elapsed: float
