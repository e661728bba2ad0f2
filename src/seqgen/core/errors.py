"""Exception hierarchy for seqgen.

Leaf components raise these; the generator turns them into ``Failure``
outcomes.
"""

from __future__ import annotations

from pathlib import Path


class SeqgenError(RuntimeError):
    """Base class for all seqgen errors."""


class CorruptStateError(SeqgenError):
    """The state file exists but cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Corrupt state file {path}: {reason}")
        self.path = path
        self.reason = reason


class FetchError(SeqgenError):
    """Base class for failures talking to the counter service."""


class NetworkError(FetchError):
    """The counter service could not be reached."""


class UnexpectedFetchError(FetchError):
    """Any other fetch failure: timeout, bad status, malformed payload."""
