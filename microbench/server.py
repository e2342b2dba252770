from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from typing import Callable, Sequence

from aiohttp import web

from .benchmarks.config import (
    FANOUT_LABEL,
    LOOP_LABEL,
    FanoutWorkload,
    HttpPingWorkload,
    LoopWorkload,
)
from .benchmarks.runner import LoopResult, run_fanout, run_loop

LOGGER = logging.getLogger("microbench.server")

PING_PATH = "/ping"
PING_BODY = "pong"


class ServerStartupError(RuntimeError):
    """Raised when the ping responder cannot bind its listener."""


async def handle_ping(request: web.Request) -> web.Response:
    return web.Response(text=PING_BODY)


def create_app() -> web.Application:
    app = web.Application()
    app.router.add_get(PING_PATH, handle_ping, allow_head=False)
    return app


class PingServer:
    """Binds a TCP listener and serves the single GET /ping route."""

    def __init__(self, workload: HttpPingWorkload | None = None) -> None:
        self._workload = workload or HttpPingWorkload()
        self._runner: web.AppRunner | None = None

    @property
    def host(self) -> str:
        return self._workload.host

    @property
    def port(self) -> int:
        return self._workload.port

    @property
    def running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        runner = web.AppRunner(create_app(), access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError as exc:
            await runner.cleanup()
            raise ServerStartupError(
                f"failed to bind ping listener on {self.host}:{self.port}: {exc}"
            ) from exc
        self._runner = runner
        LOGGER.info("Ping responder listening on http://%s:%d%s", self.host, self.port, PING_PATH)

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        LOGGER.info("Ping responder stopped")

    async def serve_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    async def __aenter__(self) -> "PingServer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


def run_loop_in_thread(workload: LoopWorkload) -> asyncio.Future[LoopResult]:
    """Start the loop on a daemon thread; the returned future resolves with its result.

    The thread is a daemon and is never joined; interrupting the event loop
    leaves it behind.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[LoopResult] = loop.create_future()

    def deliver(result: LoopResult | None, error: BaseException | None) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def worker() -> None:
        try:
            result = run_loop(workload)
        except Exception as exc:  # noqa: BLE001
            outcome = (None, exc)
        else:
            outcome = (result, None)
        # The event loop may already be closed if serving was interrupted.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(deliver, *outcome)

    thread = threading.Thread(target=worker, name="microbench-loop", daemon=True)
    thread.start()
    return future


async def run_background_workloads(
    loop_workload: LoopWorkload,
    fanout_workload: FanoutWorkload,
    emit: Callable[[str], None] = print,
) -> None:
    """Run the loop in a worker thread, then the fan-out, printing each result."""
    loop_result = await run_loop_in_thread(loop_workload)
    for line in loop_result.format_lines(LOOP_LABEL):
        emit(line)

    fanout_result = await run_fanout(fanout_workload)
    for line in fanout_result.format_lines(FANOUT_LABEL):
        emit(line)


async def serve_with_workloads(
    server: PingServer,
    workloads: Sequence[LoopWorkload | FanoutWorkload],
    emit: Callable[[str], None] = print,
) -> None:
    """Serve /ping while the given workloads run alongside the responder."""
    loop_workload = next((w for w in workloads if isinstance(w, LoopWorkload)), LoopWorkload())
    fanout_workload = next((w for w in workloads if isinstance(w, FanoutWorkload)), FanoutWorkload())

    await server.start()
    try:
        await run_background_workloads(loop_workload, fanout_workload, emit)
        LOGGER.info("Background workloads finished; still serving %s", PING_PATH)
        await asyncio.Event().wait()
    finally:
        await server.stop()
