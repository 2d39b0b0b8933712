"""
Resettable one-shot timer on the running asyncio loop.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DebounceTimer:
    """
    At most one pending callback at a time.

    Scheduling again replaces the pending callback; ``cancel`` drops it.
    """

    def __init__(self):
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> None:
        """Run ``callback`` after ``delay_ms``, superseding any pending call."""
        self.cancel()
        loop = asyncio.get_running_loop()

        def fire():
            self._handle = None
            callback()

        self._handle = loop.call_later(max(delay_ms, 0) / 1000.0, fire)

    def cancel(self) -> bool:
        """Drop the pending callback. Returns True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True
