import logging
import threading

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """Background task calling `callback` every `interval` seconds until cancelled.

    Each tick runs while holding `lock`, the same lock that serializes client
    events, so a tick never interleaves with an event handler. A tick that
    wakes up after cancel() does nothing.
    """

    def __init__(self, transport, interval, callback, lock, name='timer'):
        self.transport = transport
        self.interval = interval
        self.callback = callback
        self.lock = lock
        self.name = name
        self._stopped = threading.Event()
        self._task = None

    @property
    def active(self):
        return self._task is not None and not self._stopped.is_set()

    def start(self):
        if self._task is not None:
            return
        self._task = self.transport.start_background_task(self._run)
        logger.debug(f"[TIMER] {self.name} started (every {self.interval}s)")

    def cancel(self):
        if self._stopped.is_set():
            return
        self._stopped.set()
        logger.debug(f"[TIMER] {self.name} cancelled")

    def tick(self):
        with self.lock:
            if self._stopped.is_set():
                return False
            try:
                self.callback()
            except Exception:
                logger.exception(f"[ERROR] {self.name} tick failed")
            return True

    def _run(self):
        while not self._stopped.is_set():
            self.transport.sleep(self.interval)
            self.tick()
