from __future__ import annotations

import json
import logging
from typing import Protocol

import httpx
from pydantic import ValidationError

from seqgen.core.errors import FetchError, NetworkError, UnexpectedFetchError
from seqgen.core.models import CounterResponse

logger = logging.getLogger(__name__)


class CounterClient(Protocol):
    """Protocol defining the interface for counter service clients."""

    def fetch_sequence(self) -> CounterResponse: ...


class HttpCounterClient:
    """Fetches sequence numbers from the counter service over HTTP.

    One request per call, no retries.
    """

    def __init__(
        self,
        base_url: str,
        path: str = "Home/Generate",
        timeout_s: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._path = path
        self._timeout = httpx.Timeout(timeout_s)
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def fetch_sequence(self) -> CounterResponse:
        try:
            with httpx.Client(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = client.get(self._path)
                response.raise_for_status()
        # Timeout and protocol errors subclass TransportError, so they come first.
        except httpx.TimeoutException as exc:
            raise UnexpectedFetchError(f"Request timed out: {exc}") from exc
        except httpx.ProtocolError as exc:
            raise UnexpectedFetchError(f"Protocol error: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise UnexpectedFetchError(
                f"Counter service returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(str(exc) or type(exc).__name__) from exc
        except httpx.HTTPError as exc:
            raise UnexpectedFetchError(str(exc)) from exc

        logger.debug("Counter response: %s", response.text)

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise UnexpectedFetchError(f"Response is not valid JSON: {exc}") from exc

        try:
            return CounterResponse.from_payload(payload)
        except (ValidationError, ValueError) as exc:
            raise UnexpectedFetchError(f"Malformed counter payload: {exc}") from exc


class MockCounterClient:
    """Returns canned responses in order. Records the number of calls for test assertions.

    An exception in *responses* is raised instead of returned.
    """

    def __init__(self, responses: list[CounterResponse | FetchError] | None = None) -> None:
        self._responses = responses or [CounterResponse(numeric_id=1, token="mock")]
        self._call_index = 0

    def fetch_sequence(self) -> CounterResponse:
        item = self._responses[self._call_index % len(self._responses)]
        self._call_index += 1
        if isinstance(item, FetchError):
            raise item
        return item

    @property
    def calls(self) -> int:
        return self._call_index
