"""Signal-driven shutdown with a hard deadline."""

from __future__ import annotations

import logging
import os
import signal
import threading
from typing import Callable

_LOGGER = logging.getLogger(__name__)

DEFAULT_GRACE_SECONDS = 25.0


def run_shutdown(close: Callable[[], None], grace_seconds: float) -> bool:
    """
    Run ``close`` on a worker thread and wait at most ``grace_seconds``.

    Returns:
        True if ``close`` finished in time, False if the deadline passed.
    """
    def _close() -> None:
        try:
            close()
        except Exception:
            _LOGGER.error("Error while closing resources during shutdown", exc_info=True)

    worker = threading.Thread(target=_close, name="quizzer-shutdown", daemon=True)
    worker.start()
    worker.join(grace_seconds)
    return not worker.is_alive()


def register_shutdown_handler(
    close: Callable[[], None],
    grace_seconds: float | None = None,
    exit_process: Callable[[int], None] = os._exit,
) -> Callable[[int, object], None]:
    """Install SIGINT/SIGTERM handlers that close resources and then exit."""
    if grace_seconds is None:
        grace_seconds = float(os.getenv("SHUTDOWN_GRACE_SECONDS", DEFAULT_GRACE_SECONDS))

    def _handler(signum: int, frame: object) -> None:
        _LOGGER.info("Shutdown Handler Start for %s", signal.Signals(signum).name)
        finished = run_shutdown(close, grace_seconds)
        if not finished:
            _LOGGER.warning("Shutdown deadline of %.0f seconds passed, forcing exit", grace_seconds)
        _LOGGER.info("Shutdown Handler End")
        exit_process(0 if finished else 1)

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)
    return _handler
