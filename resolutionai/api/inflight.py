"""Guard against duplicate submissions while a generation request is running."""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Set

from resolutionai.errors import RequestInFlightError

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """Tracks call sites (e.g. "subtasks:<task id>") with a request in flight."""

    def __init__(self):
        self._keys: Set[str] = set()
        self._lock = threading.Lock()

    @contextmanager
    def claim(self, key: str) -> Iterator[None]:
        """Hold `key` for the duration of the block.

        Raises:
            RequestInFlightError: If another request already holds `key`
        """
        with self._lock:
            if key in self._keys:
                raise RequestInFlightError(key)
            self._keys.add(key)
        logger.debug(f"Request in flight: {key}")
        try:
            yield
        finally:
            with self._lock:
                self._keys.discard(key)
