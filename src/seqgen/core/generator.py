"""Rate-limited acquisition of sequence tokens.

:class:`SequenceGenerator` reads the cached record, checks the cooldown, and
either returns the cached token or fetches, persists and returns a new one.
Every path ends in an :data:`~seqgen.core.models.Outcome`; nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

import anyio.to_thread

from seqgen.core.config import GeneratorConfig
from seqgen.core.errors import CorruptStateError, NetworkError, UnexpectedFetchError
from seqgen.core.limiter import is_allowed, next_allowed_at
from seqgen.core.models import (
    Blocked,
    ErrorKind,
    Failure,
    Generated,
    Outcome,
    SequenceRecord,
)
from seqgen.core.state import StateStore
from seqgen.counter.client import CounterClient, HttpCounterClient

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


class SequenceGenerator:
    """Composes the state store, the cooldown check and the counter client."""

    def __init__(
        self,
        store: StateStore,
        client: CounterClient,
        config: GeneratorConfig,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._client = client
        self._config = config
        self._clock = clock

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    def last(self) -> SequenceRecord | None:
        """Return the cached record without touching the network."""
        return self._store.read()

    def generate(self) -> Outcome:
        try:
            record = self._store.read()
        except CorruptStateError as exc:
            logger.debug("%s", exc)
            return Failure(
                error=ErrorKind.corrupt_state,
                message=f"{exc}. Fix or delete the file to generate a new sequence.",
                detail=exc.reason,
            )
        except OSError as exc:
            logger.debug("Could not read state: %s", exc)
            return Failure(
                error=ErrorKind.unexpected,
                message=f"Could not read state file {self._config.state_file}: {exc}",
                detail=str(exc),
            )

        now = self._clock()
        cooldown = self._config.cooldown
        try:
            allowed = is_allowed(now, record, cooldown)
            retry_at = next_allowed_at(record, cooldown)
        except OverflowError:
            logger.debug("Stored timestamp %s is out of range", record.issued_at)
            return Failure(
                error=ErrorKind.corrupt_state,
                message=(
                    f"Corrupt state file {self._config.state_file}: timestamp "
                    f"{record.issued_at.isoformat()} is out of range. "
                    "Fix or delete the file to generate a new sequence."
                ),
                detail="timestamp out of range",
            )

        if record is not None and not allowed:
            logger.info("Cooldown active until %s; returning cached token", retry_at)
            return Blocked(token=record.token, issued_at=record.issued_at, retry_at=retry_at)

        try:
            response = self._client.fetch_sequence()
        except NetworkError as exc:
            logger.debug("Counter service unreachable: %s", exc)
            return Failure(
                error=ErrorKind.network_unreachable,
                message=(
                    "Couldn't connect to global counter. "
                    f"{self._fallback_hint()}"
                ),
                detail=str(exc),
            )
        except UnexpectedFetchError as exc:
            logger.debug("Counter fetch failed: %s", exc)
            return Failure(
                error=ErrorKind.unexpected,
                message=f"{exc}. {self._fallback_hint()}",
                detail=str(exc),
            )

        token = response.sequence_token
        try:
            self._store.write(SequenceRecord(issued_at=now, token=token))
        except (OSError, ValueError) as exc:
            # ValueError: the service handed back a token the state file can't hold.
            logger.debug("Could not save sequence %s: %s", token, exc)
            return Failure(
                error=ErrorKind.unexpected,
                message=f"Generated {token} but could not save it: {exc}",
                detail=str(exc),
                token=token,
            )

        logger.info("Generated sequence %s", token)
        return Generated(token=token, issued_at=now)

    def _fallback_hint(self) -> str:
        return (
            f"Directly visit {self._config.base_url} to get a sequence "
            "if issue persists"
        )


def build_generator(
    config: GeneratorConfig,
    client: CounterClient | None = None,
) -> SequenceGenerator:
    """Wire a generator for *config*, defaulting to the HTTP counter client."""
    if client is None:
        client = HttpCounterClient(
            base_url=config.base_url,
            path=config.generate_path,
            timeout_s=config.timeout_s,
        )
    return SequenceGenerator(StateStore(config.state_file), client, config)


async def generate_in_thread(generator: SequenceGenerator) -> Outcome:
    """Run :meth:`SequenceGenerator.generate` in a worker thread."""
    return await anyio.to_thread.run_sync(generator.generate)
