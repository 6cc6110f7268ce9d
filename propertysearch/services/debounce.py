"""Trailing-edge debouncer - deliver only the last value after a quiet window."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from propertysearch.utils.config import SearchConfig
from propertysearch.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

DebounceCallback = Callable[[str, Any], Union[None, Awaitable[None]]]


class Debouncer:
    """Hold the latest value per key and deliver it once the key goes quiet."""

    def __init__(self, callback: DebounceCallback, window_seconds: float = SearchConfig.SEARCH_DEBOUNCE_SECONDS):
        self.callback = callback
        self.window_seconds = window_seconds
        self.pending: dict[str, Any] = {}  # key -> latest value
        self.timers: dict[str, asyncio.Task] = {}
        logger.debug(
            "Debouncer initialized",
            debounce_window_seconds=window_seconds
        )

    def trigger(self, key: str, value: Any) -> None:
        """Record ``value`` for ``key`` and restart its quiet window."""
        self.pending[key] = value

        if key in self.timers:
            self.timers[key].cancel()
            logger.debug("Debounce timer reset", debounce_key=key)

        self.timers[key] = asyncio.get_running_loop().create_task(self._deliver_after_delay(key))

    def cancel(self, key: Optional[str] = None) -> None:
        """Drop pending values and timers for ``key`` (or every key)."""
        keys = [key] if key is not None else list(self.timers)
        for name in keys:
            timer = self.timers.pop(name, None)
            if timer is not None:
                timer.cancel()
            self.pending.pop(name, None)

    def is_pending(self, key: str) -> bool:
        return key in self.timers

    async def flush(self, key: str) -> None:
        """Deliver the pending value for ``key`` now."""
        timer = self.timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        if key in self.pending:
            await self._deliver(key, self.pending.pop(key))

    async def wait(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self.timers:
            await asyncio.gather(*list(self.timers.values()), return_exceptions=True)

    async def _deliver_after_delay(self, key: str) -> None:
        await asyncio.sleep(self.window_seconds)

        if self.timers.get(key) is not asyncio.current_task():
            return
        del self.timers[key]

        if key in self.pending:
            await self._deliver(key, self.pending.pop(key))

    async def _deliver(self, key: str, value: Any) -> None:
        try:
            result = self.callback(key, value)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                "Error delivering debounced value",
                debounce_key=key,
                error=str(e),
                exc_info=True
            )
