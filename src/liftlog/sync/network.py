"""Connectivity monitoring and online/offline transition events."""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .engine import ReconciliationEngine

logger = logging.getLogger(__name__)

TransitionCallback = Callable[["NetworkTransition"], Any]


class NetworkTransition(str, Enum):
    OFFLINE_TO_ONLINE = "offline_to_online"
    ONLINE_TO_OFFLINE = "online_to_offline"


class NetworkMonitor:
    """Tracks connectivity and notifies listeners of transitions.

    State changes come either from :meth:`set_online` (a platform signal) or
    from the background probe loop, which opens a TCP connection to
    ``probe_host:probe_port``. Only real changes emit a transition.
    """

    def __init__(
        self,
        online: bool = False,
        probe_host: str | None = None,
        probe_port: int = 443,
        probe_timeout: float = 3.0,
    ):
        self._online = online
        self.probe_host = probe_host
        self.probe_port = probe_port
        self.probe_timeout = probe_timeout
        self._callbacks: list[TransitionCallback] = []
        self._listeners: list[asyncio.Queue] = []
        self._pending: set[asyncio.Future] = set()
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> NetworkTransition | None:
        """Feed a connectivity signal; returns the transition it caused, if any."""
        if online == self._online:
            return None
        self._online = online
        transition = (
            NetworkTransition.OFFLINE_TO_ONLINE if online else NetworkTransition.ONLINE_TO_OFFLINE
        )
        logger.info("Network %s", "online" if online else "offline")
        self._dispatch(transition)
        return transition

    def on_transition(self, callback: TransitionCallback) -> Callable[[], None]:
        """Register a callback (plain or async); returns an unsubscribe function."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def events(self) -> AsyncIterator[NetworkTransition]:
        """Yield transitions as they happen."""
        queue: asyncio.Queue = asyncio.Queue()
        self._listeners.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._listeners.remove(queue)

    def bind_engine(self, engine: "ReconciliationEngine") -> Callable[[], None]:
        """Run one reconciliation per offline→online transition."""

        def on_change(transition: NetworkTransition):
            if transition is NetworkTransition.OFFLINE_TO_ONLINE:
                return engine.trigger_reconnect()
            return None

        return self.on_transition(on_change)

    async def wait_for_callbacks(self) -> None:
        """Wait until async callbacks started by transitions have finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _dispatch(self, transition: NetworkTransition) -> None:
        for queue in self._listeners:
            queue.put_nowait(transition)

        for callback in list(self._callbacks):
            try:
                result = callback(transition)
            except Exception:
                logger.exception("Network transition callback failed")
                continue
            if inspect.isawaitable(result):
                future = asyncio.ensure_future(result)
                self._pending.add(future)
                future.add_done_callback(self._callback_done)

    def _callback_done(self, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error("Network transition callback failed: %s", future.exception())

    # Probe loop

    async def probe(self) -> bool:
        """Check reachability of the probe endpoint.

        Without a probe host the current state is returned unchanged.
        """
        if not self.probe_host:
            return self._online
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.probe_host, self.probe_port),
                timeout=self.probe_timeout,
            )
        except (OSError, asyncio.TimeoutError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    async def run(self, interval: float = 15.0) -> None:
        """Probe every ``interval`` seconds until :meth:`stop`."""
        self._running = True
        logger.info("Network monitor started (interval=%.0fs)", interval)
        while self._running:
            self.set_online(await self.probe())
            await asyncio.sleep(interval)

    def start(self, interval: float = 15.0) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.ensure_future(self.run(interval))
        return self._task

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
