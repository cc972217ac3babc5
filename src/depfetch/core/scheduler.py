"""Serial operation queue.

Resolution + fetch operations run one at a time per queue, so progress
output of two projects never interleaves. Downloads inside one operation
are already concurrent, so little is lost by serializing whole operations.

The queue is an explicit object: pass your own to isolate callers (tests
do), or share ``DEFAULT_QUEUE`` to serialize a whole process.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

COMPLETED_HISTORY = 100


class OperationQueue:
    """Runs named operations strictly one after another.

    Args:
        history: How many completed operation names to remember.

    Thread safety: ``run`` may be called from any number of threads.
    """

    def __init__(self, history: int = COMPLETED_HISTORY) -> None:
        self._operation_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._active: str | None = None
        self._waiting = 0
        self._completed: deque[str] = deque(maxlen=history)

    @property
    def active(self) -> str | None:
        """Name of the running operation, if any."""
        with self._state_lock:
            return self._active

    @property
    def waiting(self) -> int:
        with self._state_lock:
            return self._waiting

    @property
    def completed(self) -> tuple[str, ...]:
        """Names of the most recent finished operations (successful or not), oldest first."""
        with self._state_lock:
            return tuple(self._completed)

    def run(self, name: str, operation: Callable[[], T]) -> T:
        """Run *operation* once every earlier operation has finished."""
        with self._state_lock:
            self._waiting += 1
        with self._operation_lock:
            with self._state_lock:
                self._waiting -= 1
                self._active = name
            logger.debug("Running operation %s", name)
            try:
                return operation()
            finally:
                with self._state_lock:
                    self._active = None
                    self._completed.append(name)


DEFAULT_QUEUE = OperationQueue()
