import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from faceit_gateway.config import Config
from faceit_gateway.errors import (
    ExhaustedRetriesError,
    GatewayError,
    QuotaExceededError,
    TransientUpstreamError,
    UpstreamNotFoundError,
    UpstreamTimeoutError,
)
from faceit_gateway.models import ApiKey

logger = logging.getLogger(__name__)

QUOTA_STATUSES = frozenset({401, 403, 429})

QUOTA_PHRASES = (
    "rate limit",
    "too many requests",
    "limit exceeded",
    "unauthorized",
)


class KeyManager(Protocol):
    @property
    def key_count(self) -> int: ...

    async def select_key(self) -> ApiKey: ...

    async def report_failure(self, key_id: str) -> None: ...

    async def report_success(self, key_id: str) -> None: ...


def is_rate_limited(status: Optional[int], message: str = "") -> bool:
    """Whether a failed call should count against the key's quota budget."""
    if status in QUOTA_STATUSES:
        return True
    lowered = message.lower()
    return any(phrase in lowered for phrase in QUOTA_PHRASES)


def _clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    if not params:
        return {}
    return {k: str(v) for k, v in params.items() if v is not None}


class FaceitClient:
    """Issues FACEIT Data API calls with key rotation, deadlines and retries."""

    def __init__(
        self,
        config: Config,
        key_manager: KeyManager,
        http_client: httpx.AsyncClient,
    ):
        self._config = config
        self._key_manager = key_manager
        self._http_client = http_client

    @property
    def max_attempts(self) -> int:
        return max(1, self._key_manager.key_count * max(1, self._config.max_retries))

    async def fetch(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """
        GET a FACEIT resource and return its parsed JSON body.

        Flow:
        1. Loop up to key_count * max_retries times:
           a. select_key() from key_manager
           b. Send the request under the configured deadline
           c. 2xx -> report_success(), return the body
           d. Quota failure (401/403/429 or rate-limit wording) ->
              report_failure() so the key can cool down, try again
           e. Timeout, network error, 5xx, bad JSON -> try again, key untouched
        2. 404 is raised straight away as UpstreamNotFoundError
        3. If every attempt failed -> ExhaustedRetriesError with the last cause
        """
        query = _clean_params(params)
        last_error: Optional[GatewayError] = None
        attempts = self.max_attempts

        for attempt in range(attempts):
            selected_key = await self._key_manager.select_key()
            try:
                body = await self._attempt(selected_key, path, query)
            except QuotaExceededError as exc:
                last_error = exc
                await self._key_manager.report_failure(selected_key.id)
                logger.warning(
                    "Quota error from FACEIT (key=%s, status=%s, attempt=%s)",
                    selected_key.key_prefix(),
                    exc.status,
                    attempt + 1,
                )
                continue
            except (UpstreamTimeoutError, TransientUpstreamError) as exc:
                last_error = exc
                logger.warning(
                    "FACEIT call failed (path=%s, attempt=%s): %s",
                    path,
                    attempt + 1,
                    exc,
                )
                continue

            await self._key_manager.report_success(selected_key.id)
            return body

        logger.error("FACEIT call exhausted %d attempts (path=%s)", attempts, path)
        raise ExhaustedRetriesError(attempts, last_error) from last_error

    async def _attempt(self, selected_key: ApiKey, path: str, query: Dict[str, str]) -> Any:
        headers = {
            "Authorization": f"Bearer {selected_key.key}",
            "Content-Type": "application/json",
        }
        timeout_ms = self._config.request_timeout_ms

        try:
            response = await asyncio.wait_for(
                self._http_client.get(path, params=query, headers=headers),
                timeout=timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise UpstreamTimeoutError(timeout_ms) from exc
        except httpx.RequestError as exc:
            raise TransientUpstreamError(f"Request error: {exc}") from exc

        if response.status_code == 404:
            raise UpstreamNotFoundError(path)

        if not response.is_success:
            text = response.text
            if is_rate_limited(response.status_code, text):
                raise QuotaExceededError(response.status_code, text)
            raise TransientUpstreamError(
                f"FACEIT API error {response.status_code}: {text}",
                status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise TransientUpstreamError(
                "Malformed JSON body from FACEIT", status=response.status_code
            ) from exc
