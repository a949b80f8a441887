"""Server lifecycle controller: bind, serve, drain on signal, stop.

States move strictly forward:

    STARTING -> SERVING -> DRAINING -> STOPPED

`STARTING -> SERVING` happens once the listening socket is bound and uvicorn
reports startup complete. The first SIGINT or SIGTERM moves the controller to
`DRAINING`: the listener closes, in-flight requests finish, and the
controller reaches `STOPPED`. Later signals are logged and ignored. The drain
is unbounded unless a drain timeout is configured.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import signal
import socket
from collections.abc import Iterator

import structlog
import uvicorn
from fastapi import FastAPI

logger = structlog.stdlib.get_logger(__name__)

_HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)
_STARTUP_POLL_SECONDS = 0.01


class LifecycleError(RuntimeError):
    """Raised when the server cannot reach or leave the serving state cleanly."""


class LifecycleBindError(LifecycleError):
    """Raised when the listening socket cannot be bound."""


class LifecycleState(enum.Enum):
    STARTING = "starting"
    SERVING = "serving"
    DRAINING = "draining"
    STOPPED = "stopped"


class ShutdownSignal:
    """Single-shot shutdown trigger fed by SIGINT and SIGTERM.

    The first trigger wins and records which signal arrived; duplicates are
    ignored once shutdown has begun.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._installed_signals: list[signal.Signals] = []
        self.received_signal: signal.Signals | None = None

    @property
    def is_triggered(self) -> bool:
        return self._event.is_set()

    def shutdown_install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Install SIGINT and SIGTERM handlers on the running loop.

        Platforms without `add_signal_handler` fall back to `signal.signal`.
        Installation is skipped outside the main thread.

        Args:
            loop: Running event loop.
        """

        for handled_signal in _HANDLED_SIGNALS:
            try:
                loop.add_signal_handler(handled_signal, self.shutdown_trigger, handled_signal)
            except NotImplementedError:
                signal.signal(
                    handled_signal,
                    lambda signal_number, _frame: loop.call_soon_threadsafe(
                        self.shutdown_trigger, signal.Signals(signal_number)
                    ),
                )
            except (RuntimeError, ValueError):
                logger.debug("Signal handlers unavailable outside the main thread", signal=handled_signal.name)
                continue
            self._installed_signals.append(handled_signal)

    def shutdown_uninstall(self, loop: asyncio.AbstractEventLoop) -> None:
        for handled_signal in self._installed_signals:
            try:
                loop.remove_signal_handler(handled_signal)
            except NotImplementedError:
                signal.signal(handled_signal, signal.SIG_DFL)
        self._installed_signals.clear()

    def shutdown_trigger(self, received_signal: signal.Signals) -> None:
        """Start shutdown on the first call; ignore later calls.

        Args:
            received_signal: Signal that requested shutdown.
        """

        if self._event.is_set():
            logger.info("Shutdown already in progress, ignoring signal", signal=received_signal.name)
            return
        self.received_signal = received_signal
        logger.info("Received shutdown signal, starting graceful shutdown...", signal=received_signal.name)
        self._event.set()

    async def shutdown_wait(self) -> signal.Signals | None:
        await self._event.wait()
        return self.received_signal


class _SignalDeferringServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to `ShutdownSignal`."""

    def install_signal_handlers(self) -> None:
        return None

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class ServerLifecycle:
    """Drive one uvicorn server through bind, serve, drain and stop.

    Attributes:
        state: Current lifecycle state.
        bound_address: `(host, port)` of the listening socket once bound.
    """

    def __init__(
        self,
        application: FastAPI,
        host: str,
        port: int,
        drain_timeout_seconds: float | None = None,
    ):
        """Initialize lifecycle controller.

        Args:
            application: ASGI application to serve.
            host: Interface to bind.
            port: Port to bind; `0` picks an ephemeral port.
            drain_timeout_seconds: Optional cap on the graceful drain. `None`
                waits for in-flight requests without limit.

        Raises:
            ValueError: Raised when application is None.
        """

        if application is None:
            raise ValueError("application must not be None")
        self._application = application
        self._host = host
        self._port = port
        self._drain_timeout_seconds = drain_timeout_seconds
        self.state = LifecycleState.STARTING
        self.bound_address: tuple[str, int] | None = None

    def lifecycle_bind(self) -> socket.socket:
        """Bind the listening socket on the configured address.

        Returns:
            socket.socket: Listening socket.

        Raises:
            LifecycleBindError: Raised when the address cannot be bound.
        """

        family = socket.AF_INET6 if ":" in self._host else socket.AF_INET
        try:
            listen_socket = socket.create_server((self._host, self._port), family=family, backlog=2048)
        except OSError as error:
            raise LifecycleBindError(f"could not bind {self._host}:{self._port}: {error.strerror}") from error
        listen_socket.set_inheritable(True)
        bound_host, bound_port = listen_socket.getsockname()[:2]
        self.bound_address = (bound_host, bound_port)
        return listen_socket

    async def lifecycle_serve(self, shutdown_signal: ShutdownSignal | None = None) -> None:
        """Serve requests until a shutdown signal arrives, then drain.

        Args:
            shutdown_signal: Optional shared trigger; a fresh one is created and
                bound to SIGINT/SIGTERM when omitted.

        Raises:
            LifecycleBindError: Raised when the listener cannot be bound.
            LifecycleError: Raised when the controller was already used or the
                server exits before finishing startup.
        """

        if self.state is not LifecycleState.STARTING:
            raise LifecycleError(f"lifecycle already {self.state.value}")

        loop = asyncio.get_running_loop()
        shutdown_signal = shutdown_signal or ShutdownSignal()
        shutdown_signal.shutdown_install(loop)
        try:
            listen_socket = self.lifecycle_bind()
            server = _SignalDeferringServer(
                uvicorn.Config(
                    self._application,
                    log_config=None,
                    access_log=False,
                    timeout_graceful_shutdown=self._drain_timeout_seconds,
                )
            )
            serve_task = asyncio.create_task(server.serve(sockets=[listen_socket]))

            while not server.started:
                if serve_task.done():
                    await serve_task
                    raise LifecycleError("server stopped before startup completed")
                await asyncio.sleep(_STARTUP_POLL_SECONDS)

            self.state = LifecycleState.SERVING
            bound_host, bound_port = self.bound_address
            logger.info("Server listening", address=f"http://{bound_host}:{bound_port}")

            signal_task = asyncio.create_task(shutdown_signal.shutdown_wait())
            done_tasks, _ = await asyncio.wait({serve_task, signal_task}, return_when=asyncio.FIRST_COMPLETED)
            if signal_task in done_tasks:
                self.state = LifecycleState.DRAINING
                logger.info("Draining in-flight requests")
                server.should_exit = True
            else:
                signal_task.cancel()
            await serve_task
        finally:
            shutdown_signal.shutdown_uninstall(loop)

        self.state = LifecycleState.STOPPED
        logger.info("Server shutdown complete")
