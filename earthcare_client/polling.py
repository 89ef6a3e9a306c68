"""Fixed-interval polling of a job resource until it reaches a terminal status."""
import logging
import threading
from typing import Any, Callable, Dict, Iterable, Optional

from .errors import ApiError, is_retryable

logger = logging.getLogger(__name__)

DEFAULT_TERMINAL_STATUSES = ("completed", "failed")


class JobPoller:
    """
    Re-issue ``fetch`` every ``interval`` seconds on a background thread
    until the returned ``status`` is terminal, ``stop()`` is called, or a
    non-retryable error occurs. Transient errors are skipped and the next tick
    tries again.
    """

    def __init__(
        self,
        fetch: Callable[[], Dict[str, Any]],
        interval: float = 2.0,
        terminal_statuses: Iterable[str] = DEFAULT_TERMINAL_STATUSES,
        on_update: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        self.fetch = fetch
        self.interval = interval
        self.terminal_statuses = frozenset(terminal_statuses)
        self.on_update = on_update
        self.last: Optional[Dict[str, Any]] = None
        self.error: Optional[ApiError] = None
        self.polls = 0
        self._stop = threading.Event()
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    @property
    def is_terminal(self) -> bool:
        return self.last is not None and self.last.get("status") in self.terminal_statuses

    def start(self) -> "JobPoller":
        if self._thread is None:
            self._thread = threading.Thread(target=self._run, name="job-poller", daemon=True)
            self._thread.start()
        return self

    def _tick(self) -> bool:
        """One poll; returns True when polling should end."""
        self.polls += 1
        try:
            status = self.fetch()
        except ApiError as e:
            if is_retryable(e):
                logger.warning(f"Poll failed, retrying in {self.interval}s: {e.message}")
                return False
            self.error = e
            return True

        self.last = status
        if self.on_update is not None:
            self.on_update(status)
        return self.is_terminal

    def _run(self) -> None:
        try:
            while not self._stop.is_set():
                if self._tick():
                    break
                self._stop.wait(self.interval)
        finally:
            self._done.set()

    def stop(self) -> None:
        self._stop.set()

    def wait(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Block until polling ends; returns the last status seen."""
        self._done.wait(timeout)
        if self.error is not None:
            raise self.error
        return self.last

    def run(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Poll in the background and block until done (or ``timeout``, which also stops it)."""
        self.start()
        if not self._done.wait(timeout):
            self.stop()
        return self.wait(0)
