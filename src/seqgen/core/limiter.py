"""Cooldown gate between successive generations."""

from __future__ import annotations

from datetime import datetime, timedelta

from seqgen.core.models import SequenceRecord

DEFAULT_COOLDOWN = timedelta(hours=24)


def is_allowed(
    now: datetime,
    record: SequenceRecord | None,
    cooldown: timedelta = DEFAULT_COOLDOWN,
) -> bool:
    """Return True if a new fetch may happen at *now*.

    The boundary is inclusive: exactly ``issued_at + cooldown`` is allowed.
    """
    if record is None:
        return True
    return record.issued_at + cooldown <= now


def next_allowed_at(
    record: SequenceRecord | None,
    cooldown: timedelta = DEFAULT_COOLDOWN,
) -> datetime | None:
    if record is None:
        return None
    return record.issued_at + cooldown
