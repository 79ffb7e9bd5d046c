"""
Explicit result type for collaborator reads.

Store readers return ``Ok(rows)`` or ``Err(reason)`` so callers can tell
"no rows" apart from "store unavailable".  ``unwrap`` is the single place
where a failed read becomes an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from app.core.exceptions import StoreUnavailableError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    source: str
    reason: str


Result = Union[Ok[T], Err]


def unwrap(result: Result[T]) -> T:
    """Return the payload of an ``Ok`` or raise ``StoreUnavailableError``."""
    if isinstance(result, Err):
        raise StoreUnavailableError(result.source, result.reason)
    return result.value
