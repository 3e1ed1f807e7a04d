"""Background asyncio loop for raster queries."""

import asyncio
import concurrent.futures
import logging
from typing import Any, Coroutine, Optional

from PyQt6.QtCore import QThread, pyqtSignal

logger = logging.getLogger(__name__)


class QueryLoopThread(QThread):
    """Worker thread running an asyncio loop for raster queries.

    Coroutines are submitted from the Qt thread. Their results come back
    through the result_ready signal, so reconciliation runs on the Qt thread
    one result at a time.
    """

    result_ready = pyqtSignal(object)  # QueryResult

    def __init__(self):
        """Initialize worker thread."""
        super().__init__()
        self.loop = asyncio.new_event_loop()

    def run(self):
        """Run the event loop until stop() is called."""
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_forever()
        finally:
            self.loop.run_until_complete(self.loop.shutdown_asyncgens())
            self.loop.close()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """
        Schedule a coroutine on the worker loop.

        Args:
            coro: Coroutine producing a QueryResult

        Returns:
            Future for the coroutine's result
        """
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: concurrent.futures.Future):
        if future.cancelled():
            return

        error = future.exception()
        if error is not None:
            logger.error(f"Query task failed: {error!r}")
            return

        self.result_ready.emit(future.result())

    def stop(self, cleanup: Optional[Coroutine[Any, Any, Any]] = None, timeout: float = 5.0):
        """
        Stop the loop, optionally running a cleanup coroutine first.

        Args:
            cleanup: Coroutine to await before stopping (e.g. closing sessions)
            timeout: Seconds to wait for the cleanup
        """
        if cleanup is not None and self.isRunning():
            try:
                asyncio.run_coroutine_threadsafe(cleanup, self.loop).result(timeout=timeout)
            except Exception:
                logger.exception("Error during query loop cleanup")
        elif cleanup is not None:
            cleanup.close()

        if self.isRunning():
            self.loop.call_soon_threadsafe(self.loop.stop)
            self.wait()
