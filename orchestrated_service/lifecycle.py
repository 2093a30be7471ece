"""
Startup and shutdown sequencing for the service.

The coordinator binds the listener, serves the app with uvicorn in a background
task, waits for SIGINT/SIGTERM and then drains in-flight requests for at most
``drain_timeout`` seconds before forcing the server down.
"""

import asyncio
import contextlib
import logging
import signal
import socket
from enum import Enum
from typing import Any, Dict, Tuple

import uvicorn
from fastapi import FastAPI

from .config import Settings
from .errors import LifecycleError, StartupError

logger = logging.getLogger(__name__)

# SIGKILL cannot be caught, so SIGTERM is the orchestrator's stop signal.
SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleState(str, Enum):
    CREATED = "created"
    SERVING = "serving"
    DRAINING = "draining"
    STOPPED = "stopped"


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to the coordinator."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


def bind_socket(host: str, port: int) -> socket.socket:
    """
    Bind a listening TCP socket.

    Raises:
        StartupError: If the address cannot be bound
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    try:
        sock = socket.create_server((host, port), family=family)
    except OSError as exc:
        raise StartupError(f"Could not bind {host}:{port}: {exc}") from exc
    sock.setblocking(False)
    return sock


class LifecycleCoordinator:
    """
    Owns process-wide startup and shutdown of the HTTP listener.

    Usage:
        coordinator = LifecycleCoordinator(app, settings)
        await coordinator.run()

    Args:
        app: The application to serve
        settings: Listener address, keep-alive and drain timeouts
    """

    def __init__(self, app: FastAPI, settings: Settings):
        self.app = app
        self.settings = settings
        self._state = LifecycleState.CREATED
        self._server: _Server | None = None
        self._serve_task: asyncio.Task | None = None
        self._socket: socket.socket | None = None
        self._bound_address: Tuple[str, int] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._shutdown_requested: asyncio.Event | None = None
        # signal -> previous handler, None when registered on the loop
        self._installed_signals: Dict[signal.Signals, Any] = {}

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def bound_address(self) -> Tuple[str, int]:
        """The (host, port) actually bound; resolves port 0 to the ephemeral port."""
        if self._bound_address is None:
            raise LifecycleError("Listener has not been bound yet")
        return self._bound_address

    async def start(self) -> None:
        """
        Bind the listener and start serving in a background task.

        Returns once the server accepts connections.

        Raises:
            StartupError: If binding fails or the server exits during startup
            LifecycleError: If called more than once
        """
        if self._state is not LifecycleState.CREATED:
            raise LifecycleError(f"Cannot start from state '{self._state.value}'")

        self._loop = asyncio.get_running_loop()
        self._shutdown_requested = asyncio.Event()

        self._socket = bind_socket(self.settings.host, self.settings.port)
        host, port = self._socket.getsockname()[:2]
        self._bound_address = (host, port)

        config = uvicorn.Config(
            self.app,
            log_config=None,
            log_level=self.settings.log_level,
            timeout_keep_alive=self.settings.idle_timeout,
            timeout_graceful_shutdown=self.settings.drain_timeout,
        )
        self._server = _Server(config)
        self._serve_task = asyncio.create_task(self._server.serve(sockets=[self._socket]))

        while not self._server.started:
            if self._serve_task.done():
                exc = self._serve_task.exception()
                self._socket.close()
                self._state = LifecycleState.STOPPED
                raise StartupError(f"Server exited during startup: {exc}") from exc
            await asyncio.sleep(0.01)

        self._state = LifecycleState.SERVING
        logger.info(">> Server running on [%d]", port)
        logger.info("   Press <Ctrl-C> to quit...")

    def install_signal_handlers(self) -> None:
        """Route SIGINT/SIGTERM to request_shutdown() on the running loop."""
        loop = self._loop or asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
                self._installed_signals[sig] = None
            except NotImplementedError:
                # Windows event loops have no add_signal_handler.
                self._installed_signals[sig] = signal.signal(
                    sig, lambda *_: loop.call_soon_threadsafe(self.request_shutdown)
                )

    def remove_signal_handlers(self) -> None:
        for sig, previous in self._installed_signals.items():
            if previous is None:
                self._loop.remove_signal_handler(sig)
            else:
                signal.signal(sig, previous)
        self._installed_signals.clear()

    def request_shutdown(self) -> None:
        """Ask the coordinator to stop. Safe to call repeatedly."""
        if self._shutdown_requested is None or self._shutdown_requested.is_set():
            return
        logger.info("Shutdown requested")
        self._shutdown_requested.set()

    async def wait_for_termination(self) -> None:
        """Block until request_shutdown() is called (normally by a signal)."""
        if self._shutdown_requested is None:
            raise LifecycleError("Coordinator has not been started")
        await self._shutdown_requested.wait()

    async def shutdown(self) -> None:
        """
        Stop accepting connections and drain in-flight requests.

        The drain is bounded by settings.drain_timeout. When it expires the
        server task is cancelled and the coordinator stops anyway.
        """
        if self._state is LifecycleState.STOPPED:
            return
        if self._state is LifecycleState.CREATED:
            self._state = LifecycleState.STOPPED
            return
        if self._state is LifecycleState.DRAINING:
            raise LifecycleError("Shutdown already in progress")

        self._state = LifecycleState.DRAINING
        self.app.state.accepting = False
        logger.info("   Server shutting down...")

        # Close listeners now rather than on uvicorn's next tick.
        for listener in self._server.servers:
            listener.close()
        self._server.should_exit = True
        try:
            await asyncio.wait_for(
                asyncio.shield(self._serve_task), timeout=self.settings.drain_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Drain did not finish within %.1fs, forcing exit", self.settings.drain_timeout
            )
            self._server.force_exit = True
            self._abort_connections()
            self._serve_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._serve_task
        finally:
            self._state = LifecycleState.STOPPED
            logger.info(">> Server stopped")

    def _abort_connections(self) -> None:
        """Cancel request tasks and drop connections still open after the drain window."""
        server_state = self._server.server_state
        for task in list(server_state.tasks):
            task.cancel()
        for connection in list(server_state.connections):
            transport = getattr(connection, "transport", None)
            if transport is not None:
                transport.close()

    async def run(self) -> None:
        """Start, wait for a termination signal, then drain and stop."""
        await self.start()
        self.install_signal_handlers()
        try:
            await self.wait_for_termination()
        finally:
            self.remove_signal_handlers()
            await self.shutdown()
