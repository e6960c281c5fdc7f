from __future__ import annotations

import datetime as _dt
import uuid

from app.application.interfaces.system import IClock, IIdGenerator


class ShortUuidGenerator(IIdGenerator):
    """First block of a UUID4 (8 hex chars); unique enough next to a timestamp."""

    def new_id(self) -> str:
        return uuid.uuid4().hex[:8]


class SystemClock(IClock):
    def now(self) -> _dt.datetime:
        return _dt.datetime.now(_dt.timezone.utc)
