import asyncio
import threading
from typing import Optional

from governance.models import StatusUpdate
from utils.logger_utils import get_logger

logger = get_logger("Status Subscription")

_END_OF_STREAM = object()


class StatusSubscription(object):
    """
    Async iterator over the status notifications of one broadcast extrinsic.

    The node pushes notifications to a watcher running in a worker thread; the
    watcher hands them to the event loop through `publish`, and `end` marks the
    stream as finished. `cancel` tells the watcher to stop at its next
    notification, and anything published after cancellation is dropped.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue()
        self._cancelled = threading.Event()
        self._watcher: Optional[asyncio.Future] = None

    def attach(self, watcher: asyncio.Future) -> None:
        """Registers the task driving this subscription so it can be awaited on close."""
        self._watcher = watcher

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def publish(self, update: StatusUpdate) -> None:
        """Thread-safe. Queues a status update for the consumer."""
        if self.cancelled:
            logger.debug(f"Discarding status {update.status.value} received after cancellation")
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, update)

    def end(self) -> None:
        """Thread-safe. Signals that no more updates will be published."""
        self._loop.call_soon_threadsafe(self._queue.put_nowait, _END_OF_STREAM)

    def cancel(self) -> None:
        self._cancelled.set()

    async def wait_closed(self) -> None:
        """Waits for the watcher to return, if one is attached."""
        if self._watcher is not None:
            await self._watcher

    def __aiter__(self):
        return self

    async def __anext__(self) -> StatusUpdate:
        item = await self._queue.get()
        if item is _END_OF_STREAM:
            raise StopAsyncIteration
        return item
