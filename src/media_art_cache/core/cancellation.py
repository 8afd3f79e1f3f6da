"""
Cooperative cancellation for in-flight cache requests.
"""

import threading
from typing import Optional

from .errors import OperationCancelled


class CancellationToken:
    """
    Flag checked by the engine before filesystem work and before calling
    external collaborators. A mutation that has already started always
    runs to completion.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: Optional[str] = None) -> None:
        if self._event.is_set():
            raise OperationCancelled(f"Cancelled before {stage}" if stage else "Cancelled")


NEVER_CANCELLED = CancellationToken()
