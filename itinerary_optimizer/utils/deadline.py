"""Deadline and cancellation signal for long-running optimizations."""

import asyncio
import time
from typing import Optional


class Deadline:
    """Time budget and/or cancellation event checked between iterations.

    Strategies poll ``expired`` between steps and return their best-so-far
    result once it turns true.
    """

    def __init__(
        self,
        seconds: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        self._expires_at = time.monotonic() + seconds if seconds is not None else None
        self._cancel_event = cancel_event

    @property
    def expired(self) -> bool:
        if self._cancel_event is not None and self._cancel_event.is_set():
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    @property
    def remaining(self) -> Optional[float]:
        """Seconds left, or None when there is no time budget."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def cancel(self) -> None:
        if self._cancel_event is None:
            self._cancel_event = asyncio.Event()
        self._cancel_event.set()

    @classmethod
    def never(cls) -> "Deadline":
        return cls()
