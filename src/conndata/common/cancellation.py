from __future__ import annotations

import threading
from typing import Optional

from conndata.common.errors import CancelledError


class CancellationToken:
    """Per-request cancellation flag checked between rows, objects and pages."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout=timeout)

    def raise_if_cancelled(self, operation: str = "") -> None:
        if self._event.is_set():
            raise CancelledError(
                "Request was cancelled by the caller.",
                details={"operation": operation} if operation else None,
            )
