from __future__ import annotations

import threading
from typing import Optional


class CancellationToken:
    """
    One-shot cancellation signal shared between the frame loop and whoever
    tears the app down (window close, Ctrl+C, test harness).

    Written once, read cooperatively at the loop's checkpoints. Backed by a
    `threading.Event` so a signal handler or UI thread may set it too.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    def __repr__(self) -> str:
        state = f"cancelled reason={self.reason!r}" if self.cancelled else "active"
        return f"CancellationToken({state})"
