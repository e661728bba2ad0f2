"""Core domain models for seqgen.

All domain objects are Pydantic BaseModel classes. Generation results are a
tagged union (``Generated | Blocked | Failure``) discriminated on ``kind``.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

# ---------------------------------------------------------------------------
# Persisted state
# ---------------------------------------------------------------------------


class SequenceRecord(BaseModel):
    """The single cached generation, persisted by the state store."""

    model_config = ConfigDict(frozen=True)

    issued_at: datetime
    token: str

    @field_validator("issued_at")
    @classmethod
    def _require_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("issued_at must be timezone-aware")
        return value

    @field_validator("token")
    @classmethod
    def _require_line_safe(cls, value: str) -> str:
        if not value:
            raise ValueError("token must not be empty")
        if any(ch in value for ch in (",", "\r", "\n")):
            raise ValueError("token must not contain commas or line breaks")
        return value


# ---------------------------------------------------------------------------
# Remote counter
# ---------------------------------------------------------------------------


class CounterResponse(BaseModel):
    """Reply of the remote counter service."""

    model_config = ConfigDict(frozen=True)

    numeric_id: int
    token: str

    @property
    def sequence_token(self) -> str:
        return f"{self.numeric_id}-{self.token}.sql"

    @classmethod
    def from_payload(cls, payload: Any) -> CounterResponse:
        """Decode a serialized tuple: ``{"Item1": n, "Item2": s}`` or ``[n, s]``."""
        if isinstance(payload, dict):
            return cls.model_validate(
                {"numeric_id": payload.get("Item1"), "token": payload.get("Item2")}
            )
        if isinstance(payload, list):
            if len(payload) != 2:
                raise ValueError(f"expected 2 items in payload, got {len(payload)}")
            return cls.model_validate({"numeric_id": payload[0], "token": payload[1]})
        raise ValueError(f"unsupported payload type: {type(payload).__name__}")


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class ErrorKind(StrEnum):
    corrupt_state = "corrupt_state"
    network_unreachable = "network_unreachable"
    unexpected = "unexpected"


class Generated(BaseModel):
    """A new token was fetched and persisted."""

    kind: Literal["generated"] = "generated"
    token: str
    issued_at: datetime


class Blocked(BaseModel):
    """The cooldown has not elapsed; the cached token is returned instead."""

    kind: Literal["blocked"] = "blocked"
    token: str
    issued_at: datetime
    retry_at: datetime


class Failure(BaseModel):
    """A reportable error. ``token`` is set only when a fetched value could not be saved."""

    kind: Literal["error"] = "error"
    error: ErrorKind
    message: str
    detail: str | None = None
    token: str | None = None


Outcome = Annotated[Generated | Blocked | Failure, Field(discriminator="kind")]

outcome_adapter: TypeAdapter[Outcome] = TypeAdapter(Outcome)
