"""Cooperative cancellation for PDF rendering.

Rendering runs in a worker thread. When the HTTP client goes away the request
handler cancels the token; the renderer stops at its next checkpoint and any
draw call issued in between is dropped by the guarded canvas.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)


class ReportCancelled(Exception):
    """Raised inside a renderer once its token has been cancelled."""

    pass


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ReportCancelled()


class GuardedCanvas:
    """Proxy around a reportlab canvas that ignores calls after cancellation."""

    def __init__(self, canvas: Any, token: CancellationToken) -> None:
        self._canvas = canvas
        self._token = token
        self.skipped = 0

    @property
    def canvas(self) -> Any:
        return self._canvas

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._canvas, name)
        if not callable(attr):
            return attr

        def guarded(*args: Any, **kwargs: Any) -> Any:
            if self._token.cancelled:
                if self.skipped == 0:
                    logger.info("Report cancelled; skipping canvas.%s and later draws", name)
                self.skipped += 1
                return None
            return attr(*args, **kwargs)

        return guarded
