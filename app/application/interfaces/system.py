from __future__ import annotations
from typing import Protocol
import datetime as _dt


class IIdGenerator(Protocol):
    """Short random ids that keep storage keys unique within one millisecond."""

    def new_id(self) -> str:
        ...


class IClock(Protocol):
    """Timestamp source for storage keys; injectable for deterministic tests."""

    def now(self) -> _dt.datetime:
        ...
