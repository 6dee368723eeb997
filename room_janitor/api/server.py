# room_janitor/api/server.py

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI
from prometheus_client import REGISTRY, CollectorRegistry

from room_janitor.api.routes import health, metrics
from room_janitor.core.errors import ListenerError

logger = logging.getLogger(__name__)


def create_health_app() -> FastAPI:
    app = FastAPI(title="HipChat Janitor - health", docs_url=None, redoc_url=None, openapi_url=None)
    app.include_router(health.router)
    return app


def create_metrics_app(registry: Optional[CollectorRegistry] = None) -> FastAPI:
    app = FastAPI(title="HipChat Janitor - metrics", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.registry = registry if registry is not None else REGISTRY
    app.include_router(metrics.router)
    return app


# ============================================================================
# BACKGROUND LISTENERS
# ============================================================================

class BackgroundServer:
    """
    Runs a uvicorn server on a daemon thread.

    The polling loop owns the main thread, so each observability app gets
    its own listener and thread. Daemon threads die with the process; there
    is no shutdown sequencing.
    """

    def __init__(self, app: FastAPI, port: int, host: str = "0.0.0.0", name: str = "http") -> None:
        config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False)
        self.server = uvicorn.Server(config)
        self.port = port
        self.exit_code: Optional[int] = None
        self.thread = threading.Thread(target=self._serve, name=f"{name}-server", daemon=True)

    def _serve(self) -> None:
        # uvicorn reports bind failures with sys.exit() inside this thread
        try:
            self.server.run()
        except SystemExit as exc:
            self.exit_code = exc.code if isinstance(exc.code, int) else 1

    def start(self, timeout: float = 10.0) -> None:
        """
        Start serving and block until the listener accepts connections.

        Raises:
            ListenerError: the server exited (e.g. port in use) or did not
                come up within `timeout` seconds
        """
        self.thread.start()
        deadline = time.monotonic() + timeout
        while not self.server.started:
            if not self.thread.is_alive():
                raise ListenerError(
                    f"{self.thread.name} could not listen on port {self.port} (exit code {self.exit_code})"
                )
            if time.monotonic() >= deadline:
                self.stop()
                raise ListenerError(f"{self.thread.name} did not start on port {self.port} within {timeout}s")
            time.sleep(0.05)
        logger.info("✓ %s listening on port %d", self.thread.name, self.port)

    def stop(self, timeout: float = 5.0) -> None:
        self.server.should_exit = True
        self.thread.join(timeout)


def start_observability(health_port: int, metrics_port: int) -> list[BackgroundServer]:
    """
    Start /health and /metrics on separate listeners; both serve concurrently.

    Raises:
        ListenerError: either listener failed to come up; any listener
            already started is stopped first
    """
    servers = [
        BackgroundServer(create_health_app(), health_port, name="health"),
        BackgroundServer(create_metrics_app(), metrics_port, name="metrics"),
    ]
    started: list[BackgroundServer] = []
    for server in servers:
        try:
            server.start()
        except ListenerError:
            for running in started:
                running.stop()
            raise
        started.append(server)
    return servers
