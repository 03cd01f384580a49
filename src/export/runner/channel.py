"""
Bounded fan-in channel between slice workers and the output writer.
"""

import logging
import queue
import threading
from typing import Iterator, Optional

from ..core.exceptions import ChannelClosedError
from ..core.models import Batch


logger = logging.getLogger(__name__)

_CLOSED = object()


class FanInChannel:
    """
    Bounded multi-producer, single-consumer queue of batches.

    - send() blocks while `capacity` batches are unread
    - close() is called once, after every producer has stopped; the
      consumer then sees the remaining batches and its iteration ends
    - abort() is used when the consumer is gone; blocked and later
      send() calls raise ChannelClosedError instead of hanging
    """

    def __init__(self, capacity: int, poll_interval: float = 0.1):
        if capacity < 1:
            raise ValueError(f"Channel capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.poll_interval = poll_interval
        self._queue: "queue.Queue" = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()
        self._aborted = threading.Event()
        self._abort_reason: Optional[str] = None
        self._lock = threading.Lock()
        self.sent = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def aborted(self) -> bool:
        return self._aborted.is_set()

    def send(self, batch: Batch) -> None:
        """
        Hand a batch to the consumer, blocking while the channel is full.

        Raises:
            ChannelClosedError: if the channel is closed or aborted
        """
        if self._closed.is_set():
            raise ChannelClosedError("Send on closed channel")
        if not self._put(batch):
            raise ChannelClosedError(f"Channel aborted: {self._abort_reason}")
        with self._lock:
            self.sent += 1

    def close(self) -> None:
        """Mark the end of input. Must only be called once all producers are done."""
        if self._closed.is_set():
            return
        self._closed.set()
        # If the consumer is gone nobody will read the marker
        self._put(_CLOSED)
        logger.debug(f"Channel closed after {self.sent} batches")

    def abort(self, reason: str) -> None:
        """Fail every pending and future send."""
        self._abort_reason = reason
        self._aborted.set()
        logger.debug(f"Channel aborted: {reason}")

    def __iter__(self) -> Iterator[Batch]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item

    def _put(self, item) -> bool:
        """Put with periodic abort checks. Returns False if aborted."""
        while not self._aborted.is_set():
            try:
                self._queue.put(item, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False
