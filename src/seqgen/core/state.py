"""Single-slot state store for the last generated sequence token.

The file holds one line, ``"{ticks},{token}"``, where ``ticks`` counts 100 ns
intervals since 0001-01-01T00:00:00 UTC (.NET ``DateTime.Ticks``).
"""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from seqgen.core.errors import CorruptStateError
from seqgen.core.models import SequenceRecord

logger = logging.getLogger(__name__)

TICKS_EPOCH = datetime(1, 1, 1, tzinfo=UTC)
TICKS_PER_MICROSECOND = 10
TICKS_PER_SECOND = 10_000_000


def to_ticks(moment: datetime) -> int:
    delta = moment.astimezone(UTC) - TICKS_EPOCH
    return (
        (delta.days * 86_400 + delta.seconds) * TICKS_PER_SECOND
        + delta.microseconds * TICKS_PER_MICROSECOND
    )


def from_ticks(ticks: int) -> datetime:
    # Sub-microsecond ticks are truncated.
    return TICKS_EPOCH + timedelta(microseconds=ticks // TICKS_PER_MICROSECOND)


class StateStore:
    """Reads and atomically rewrites the sequence state file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> SequenceRecord | None:
        """Return the stored record, or None if the file does not exist.

        Raises:
            CorruptStateError: The file exists but is not a valid record.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No state file at %s", self._path)
            return None
        except UnicodeDecodeError as exc:
            raise CorruptStateError(self._path, f"not valid UTF-8: {exc}") from exc

        return self._parse(raw)

    def write(self, record: SequenceRecord) -> None:
        """Replace the state file with *record*."""
        content = f"{to_ticks(record.issued_at)},{record.token}"

        self._path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write via tmp + fsync + replace
        tmp_path = self._path.parent / f"{self._path.name}.tmp"
        fd = os.open(str(tmp_path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
        try:
            os.write(fd, content.encode("utf-8"))
            os.fsync(fd)
        finally:
            os.close(fd)

        os.replace(tmp_path, self._path)
        logger.debug("Wrote state %r to %s", content, self._path)

    def _parse(self, raw: str) -> SequenceRecord:
        line = raw.removesuffix("\n").removesuffix("\r")
        fields = line.split(",")
        if len(fields) != 2:
            raise CorruptStateError(self._path, f"expected 2 fields, got {len(fields)}")

        ticks_text, token = fields
        if not (ticks_text.isascii() and ticks_text.isdigit()):
            raise CorruptStateError(self._path, f"timestamp {ticks_text!r} is not numeric")

        try:
            return SequenceRecord(issued_at=from_ticks(int(ticks_text)), token=token)
        except (OverflowError, ValidationError) as exc:
            raise CorruptStateError(self._path, str(exc)) from exc
