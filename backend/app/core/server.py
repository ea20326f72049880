"""
HTTP server lifecycle — serve until signalled, then drain and stop.

Two tasks joined at one barrier:

    serve     runs the uvicorn server; returning without a stop request
              is a ServerError
    shutdown  waits for SIGINT / SIGTERM, stops accepting connections,
              lets in-flight requests finish within `shutdown_timeout`,
              then forces the stragglers closed

If either task fails the other is cancelled and the failure re-raised.
The drain deadline is created fresh when shutdown starts; it does not
inherit anything from the signal that triggered it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Iterator, Optional, Sequence

import uvicorn

from backend.app.core.errors import ServerError

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to `run_http_server`."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:  # uvicorn < 0.29
        pass


async def run_http_server(
    server: uvicorn.Server,
    *,
    shutdown_timeout: float = 30.0,
    stop: Optional[asyncio.Event] = None,
    signals: Sequence[signal.Signals] = SHUTDOWN_SIGNALS,
) -> None:
    """Run `server` until a shutdown signal, then shut it down gracefully."""
    loop = asyncio.get_running_loop()
    stop = stop or asyncio.Event()
    served = asyncio.Event()

    installed = []
    for sig in signals:
        loop.add_signal_handler(sig, stop.set)
        installed.append(sig)

    async def serve() -> None:
        logger.info(
            "starting HTTP server",
            extra={"addr": f"{server.config.host}:{server.config.port}"},
        )
        try:
            await server.serve()
        except SystemExit as exc:
            # uvicorn exits the process when it cannot bind
            raise ServerError("HTTP server failed to start") from exc
        finally:
            served.set()
        if not stop.is_set():
            raise ServerError("HTTP server stopped unexpectedly")

    async def shutdown() -> None:
        await stop.wait()
        logger.info("[server] shutting down...")
        server.should_exit = True

        try:
            await asyncio.wait_for(served.wait(), shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "graceful shutdown timed out, closing remaining connections",
                extra={"shutdown_timeout_s": shutdown_timeout},
            )
            server.force_exit = True
            await served.wait()

    tasks = [asyncio.create_task(serve()), asyncio.create_task(shutdown())]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            task.result()
    finally:
        for task in tasks:
            task.cancel()
        for sig in installed:
            loop.remove_signal_handler(sig)

    logger.info("[server] stopped")
