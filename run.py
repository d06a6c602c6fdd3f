"""Entry point: serve the liveness endpoint and run the refresh loop until stopped."""

from __future__ import annotations

import logging
import os
import signal
import threading
from typing import cast

from dotenv import load_dotenv
from werkzeug.serving import BaseWSGIServer, make_server

from valut import create_app
from valut.services.scheduler import (
    REFRESH_LOOP_KEY,
    RefreshLoop,
    init_scheduler,
    shutdown_scheduler,
)

logger = logging.getLogger("valut")

WAIT_POLL_SECONDS = 1.0


def _prepare_environment() -> None:
    """Load environment variables from a local .env file if present."""

    project_root = os.path.abspath(os.path.dirname(__file__))
    env_file = os.path.join(project_root, ".env")
    if os.path.exists(env_file):
        load_dotenv(env_file)


def _start_health_server(app) -> BaseWSGIServer:
    server = make_server(
        app.config.get("HEALTH_HOST", "0.0.0.0"),
        int(app.config.get("HEALTH_PORT", 8000)),
        app,
        threaded=True,
    )
    thread = threading.Thread(target=server.serve_forever, name="health-server", daemon=True)
    thread.start()
    return server


def _install_signal_handlers(loop: RefreshLoop) -> None:
    def _handle(signum, _frame) -> None:
        logger.info("%s received; starting shutdown", signal.Signals(signum).name)
        loop.stop()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


def main() -> None:
    """Run until the refresh loop gives up or a shutdown signal arrives."""

    _prepare_environment()

    app = create_app(os.getenv("APP_ENV"))
    loop = cast(RefreshLoop, app.extensions[REFRESH_LOOP_KEY])

    server = _start_health_server(app)
    _install_signal_handlers(loop)
    if init_scheduler(app) is None:
        logger.warning("Refresh loop disabled; serving liveness only until a shutdown signal")
    logger.info("valut started")

    try:
        while not loop.wait(WAIT_POLL_SECONDS):
            pass
    finally:
        shutdown_scheduler(app)
        server.shutdown()

    if loop.exhausted:
        logger.error("valut stopped after exceeding the retry limit")
        raise SystemExit(1)
    logger.info("valut ended")


if __name__ == "__main__":
    main()
