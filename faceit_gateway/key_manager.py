"""Credential rotation with per-key cooldowns."""

import asyncio
import logging
import time
from typing import Callable, Dict, List

from faceit_gateway.config import Config
from faceit_gateway.models import ApiKey, RotationState

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


class KeyManager:
    """Owns the key ring and decides which credential the next call uses.

    Selection never blocks and never raises: when every key is cooling down
    the first key is handed out anyway and the upstream rejection is left to
    the caller's retry loop.
    """

    def __init__(self, config: Config, clock: Callable[[], float] = _now_ms):
        self.state: RotationState = RotationState()
        self.rotation_enabled: bool = config.rotation_enabled
        self.max_retries: int = config.max_retries
        self.cooldown_ms: int = config.cooldown_ms
        self._clock = clock
        self._lock: asyncio.Lock = asyncio.Lock()

        for index, api_key in enumerate(config.api_keys, start=1):
            self.state.keys.append(ApiKey(id=f"key_{index}", key=api_key))

    @property
    def key_count(self) -> int:
        return len(self.state.keys)

    async def select_key(self) -> ApiKey:
        async with self._lock:
            keys = self.state.keys
            if not self.rotation_enabled or len(keys) == 1:
                return keys[0]

            now = self._clock()
            start = self.state.cursor
            while True:
                key = keys[self.state.cursor]
                if not key.in_cooldown or now - key.last_used_at > self.cooldown_ms:
                    key.in_cooldown = False
                    key.last_used_at = now
                    return key
                self.state.cursor = (self.state.cursor + 1) % len(keys)
                if self.state.cursor == start:
                    break

            logger.warning("All %d keys are cooling down, using the first", len(keys))
            return keys[0]

    async def report_failure(self, key_id: str) -> None:
        async with self._lock:
            key = self.state.get(key_id)
            if not key:
                return

            key.failure_count += 1
            if key.failure_count >= self.max_retries:
                key.in_cooldown = True
                key.last_used_at = self._clock()
                logger.info(
                    "Key %s cooling down after %d failures",
                    key.key_prefix(),
                    key.failure_count,
                )

    async def report_success(self, key_id: str) -> None:
        async with self._lock:
            key = self.state.get(key_id)
            if not key:
                return

            key.failure_count = 0
            key.in_cooldown = False

    def snapshot(self) -> List[Dict[str, object]]:
        return [self._format_key_status(key) for key in self.state.keys]

    def get_status(self) -> Dict[str, object]:
        now = self._clock()
        available_keys = sum(
            1
            for key in self.state.keys
            if not key.in_cooldown or now - key.last_used_at > self.cooldown_ms
        )
        return {
            "total_keys": len(self.state.keys),
            "available_keys": available_keys,
            "cooldown_keys": len(self.state.keys) - available_keys,
            "rotation_enabled": self.rotation_enabled,
            "keys": self.snapshot(),
        }

    def _format_key_status(self, key: ApiKey) -> Dict[str, object]:
        return {
            "id": key.id,
            "key_prefix": key.key_prefix(),
            "failure_count": key.failure_count,
            "in_cooldown": key.in_cooldown,
            "last_used_at": key.last_used_at,
        }
