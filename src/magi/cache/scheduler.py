"""Fixed-interval background refresh."""

from __future__ import annotations

import logging
import threading

from magi.cache.manager import CacheManager

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 4 * 60 * 60


class PeriodicRefresher:
    """Call ``manager.refresh()`` every *interval_seconds* on a daemon thread.

    A tick that lands while a refresh is still running is a no-op: the
    manager's own lock turns it into an immediate ``False``.
    """

    def __init__(
        self,
        manager: CacheManager,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        *,
        run_immediately: bool = True,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.manager = manager
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="magi-refresh", daemon=True)
        self._thread.start()
        logger.info("Scheduled cache refresh every %.0f seconds", self.interval_seconds)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def tick(self) -> bool:
        """Run one refresh; errors are logged so the loop keeps going."""
        try:
            return self.manager.refresh()
        except Exception:
            logger.exception("Error in scheduled cache refresh")
            return False

    def _run(self) -> None:
        if self.run_immediately:
            self.tick()
        while not self._stop.wait(self.interval_seconds):
            self.tick()
