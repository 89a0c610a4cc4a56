# src/tsumiage/cli/main.py

"""
CLI entrypoint for the primary process.

Initializes logging, builds AppState, then runs the console REPL.
On exit the background lifecycle hook reschedules reminders and wakes
the widget process.
"""

from __future__ import annotations

import logging
import signal

from ..cli.bootstrap import create_initial_state, run_background_hook
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    run_background_hook(state)

    # TaskStore uses short-lived sqlite connections per call; close() is a no-op kept for symmetry.
    try:
        store = getattr(state, "task_store", None)
        if store is not None and hasattr(store, "close"):
            store.close()
    except Exception:
        logger.debug("Task store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/tsumiage")
    setup_logging(log_dir=log_dir, log_name="tsumiage", console_level=console_level)

    logger.info("Starting %s %s...", settings.app_name, settings.app_version)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        raise KeyboardInterrupt

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (AttributeError, ValueError):
        # Not every platform (or non-main thread) supports SIGTERM handlers.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled. Running the background hook only.")
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
