"""Interrupt observation for the controllers.

A single ``InterruptWatcher`` is installed for the lifetime of a controller
run. Controllers poll it before each iteration or round and wait on it
during inter-round sleeps; nothing else in the tree touches signals.
"""

import logging
import signal
import threading
import time

logger = logging.getLogger(__name__)

WATCHED_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Signal handlers only set a flag, so waits wake up this often to look at it.
POLL_INTERVAL = 0.1


class InterruptWatcher:
    """Records SIGINT/SIGTERM and exposes it as a flag and a timed wait.

    Use as a context manager; previous handlers are restored on exit.
    Handlers can only be installed from the main thread, elsewhere the
    watcher still works through ``trigger()``.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._signalled = False
        self._previous: dict[int, object] = {}

    def __enter__(self) -> "InterruptWatcher":
        if threading.current_thread() is threading.main_thread():
            for signum in WATCHED_SIGNALS:
                self._previous[signum] = signal.getsignal(signum)
                signal.signal(signum, self._handle)
        else:
            logger.debug("not on the main thread, signal handlers not installed")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def _handle(self, signum, frame) -> None:
        # Only a plain assignment: the handler may run while wait() holds the
        # event's non-reentrant lock on this same thread.
        self._signalled = True

    def trigger(self) -> None:
        """Mark the watcher as interrupted."""
        self._event.set()

    @property
    def interrupted(self) -> bool:
        return self._signalled or self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep for ``seconds`` unless interrupted first.

        Returns:
            True if the wait was cut short by an interrupt.
        """
        deadline = time.monotonic() + seconds
        while not self.interrupted:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self._event.wait(timeout=min(remaining, POLL_INTERVAL))
        return True
