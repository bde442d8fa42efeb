import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """Delivers only the last value pushed within `delay` seconds to `callback`.

    Must be used from inside a running event loop.
    """

    def __init__(self, delay: float, callback: Callable[[Any], Any]):
        self.delay = delay
        self.callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._value: Any = None

    def push(self, value: Any = None) -> None:
        self._value = value
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _fire(self) -> None:
        self._handle = None
        try:
            self.callback(self._value)
        except Exception as e:
            logger.error(f"Debounced callback failed: {e}")

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
