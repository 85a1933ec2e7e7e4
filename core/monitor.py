"""
Asyncio monitor: a fixed-rate ticker drives probe cycles over an EndpointStore.
Each cycle probes every endpoint concurrently and joins them all before it completes.
Cycles are single-flight: a tick that arrives while a cycle is running is dropped.
Workers never touch UI; results leave through the notification sink and the
cycle-complete callback.
"""
import asyncio
import logging
import threading
from typing import Awaitable, Callable, Optional

from core.endpoints import Endpoint, EndpointStore
from core.notify import NotificationSink, dispatch
from core.probe import PROBE_TIMEOUT_MS, probe
from core.state import build_notification

logger = logging.getLogger("portwatch.monitor")

CHECK_INTERVAL_S = 10.0

Prober = Callable[[str, int, int], Awaitable[bool]]


async def _safe_probe(prober: Prober, endpoint: Endpoint, timeout_ms: int) -> bool:
    try:
        return bool(await prober(endpoint.host, endpoint.port, timeout_ms))
    except Exception as e:
        logger.exception("Probe of %s (%s) failed: %s", endpoint.name, endpoint.address, e)
        return False


async def check_endpoint(
    endpoint: Endpoint,
    store: EndpointStore,
    sink: Optional[NotificationSink],
    timeout_ms: int,
    prober: Prober,
    limit: Optional[asyncio.Semaphore] = None,
) -> None:
    """Probe one endpoint, apply the result to the store, notify on a transition."""
    if limit is not None:
        async with limit:
            reachable = await _safe_probe(prober, endpoint, timeout_ms)
    else:
        reachable = await _safe_probe(prober, endpoint, timeout_ms)

    transition = store.apply_result(endpoint.id, reachable)
    if transition is None:
        logger.debug("Discarded result for removed endpoint %s (%s)", endpoint.name, endpoint.address)
        return

    logger.debug(
        "Check %s (%s): %s", endpoint.name, endpoint.address, "ONLINE" if reachable else "OFFLINE"
    )
    if transition.event is None:
        return

    current = store.get(endpoint.id)
    name = current.name if current is not None else endpoint.name
    if reachable:
        logger.info("OFFLINE->ONLINE %s (%s)", name, endpoint.address)
    else:
        logger.info("ONLINE->OFFLINE %s (%s)", name, endpoint.address)
    dispatch(sink, build_notification(transition.event, name))


async def run_cycle(
    store: EndpointStore,
    sink: Optional[NotificationSink] = None,
    timeout_ms: int = PROBE_TIMEOUT_MS,
    prober: Prober = probe,
    max_concurrency: int = 0,
) -> int:
    """
    Probe every endpoint in a snapshot of the store once, concurrently.
    Returns the number of endpoints probed. max_concurrency <= 0 means unbounded.
    """
    endpoints = store.snapshot()
    if not endpoints:
        return 0
    limit = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
    await asyncio.gather(
        *(check_endpoint(ep, store, sink, timeout_ms, prober, limit) for ep in endpoints)
    )
    return len(endpoints)


class Monitor:
    """
    Scheduler around run_cycle. Use run() inside an existing event loop, or
    start()/stop() to host it on a private loop in a daemon thread.
    """

    def __init__(
        self,
        store: EndpointStore,
        sink: Optional[NotificationSink] = None,
        on_cycle_complete: Optional[Callable[[], None]] = None,
        interval: float = CHECK_INTERVAL_S,
        timeout_ms: int = PROBE_TIMEOUT_MS,
        max_concurrency: int = 0,
        prober: Prober = probe,
    ) -> None:
        self.store = store
        self.sink = sink
        self.on_cycle_complete = on_cycle_complete
        self._interval = float(interval)
        self.timeout_ms = timeout_ms
        self.max_concurrency = max_concurrency
        self.prober = prober
        self.cycles_completed = 0
        self._cycle_task: Optional[asyncio.Task] = None
        self._stop_requested = False
        self._wake: Optional[asyncio.Event] = None
        self._running_loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def interval(self) -> float:
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        # The pending wait is re-measured from the last tick, so a shorter
        # interval can fire right away. Safe to set from any thread.
        self._interval = float(value)
        loop, wake = self._running_loop, self._wake
        if loop is None or wake is None:
            return
        try:
            loop.call_soon_threadsafe(wake.set)
        except RuntimeError:
            # Loop already closed.
            pass

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_task is not None and not self._cycle_task.done()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> bool:
        """Start a cycle unless one is running. Must be called from the monitor's loop."""
        if self.cycle_in_progress:
            logger.debug("Cycle still in progress; tick dropped")
            return False
        self._cycle_task = asyncio.get_running_loop().create_task(self._cycle())
        return True

    async def _cycle(self) -> None:
        try:
            count = await run_cycle(
                self.store,
                sink=self.sink,
                timeout_ms=self.timeout_ms,
                prober=self.prober,
                max_concurrency=self.max_concurrency,
            )
        except Exception as e:
            logger.exception("Cycle failed: %s", e)
            return
        self.cycles_completed += 1
        logger.debug("Cycle %d complete (%d endpoints)", self.cycles_completed, count)
        if self.on_cycle_complete is not None:
            try:
                self.on_cycle_complete()
            except Exception as e:
                logger.exception("Cycle-complete callback failed: %s", e)

    async def join(self) -> None:
        """Wait for the in-flight cycle, if any."""
        task = self._cycle_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    def request_stop(self) -> None:
        """Graceful stop: let the running cycle finish, schedule no more. Call on the monitor's loop."""
        self._stop_requested = True
        if self._wake is not None:
            self._wake.set()

    async def _wait_next_tick(self, ticked_at: float) -> None:
        loop = asyncio.get_running_loop()
        while not self._stop_requested:
            remaining = ticked_at + self._interval - loop.time()
            if remaining <= 0:
                return
            self._wake.clear()
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                return

    async def run(self) -> None:
        """Tick now, then every interval seconds, until request_stop() or cancellation."""
        loop = asyncio.get_running_loop()
        self._wake = asyncio.Event()
        self._running_loop = loop
        logger.info("Monitor started: %d endpoints, every %ss", len(self.store), self._interval)
        try:
            while not self._stop_requested:
                ticked_at = loop.time()
                self.tick()
                await self._wait_next_tick(ticked_at)
            await self.join()
        except asyncio.CancelledError:
            task = self._cycle_task
            if task is not None and not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
            logger.info("Monitor cancelled")
            raise
        finally:
            self._running_loop = None
        logger.info("Monitor stopped")

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_requested = False
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name="portwatch-monitor", daemon=True)
        self._thread.start()

    def _run_loop(self) -> None:
        loop = self._loop
        if loop is None:
            return
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(self.run())
        finally:
            loop.close()

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> bool:
        """
        Thread-safe graceful stop. With wait=False, or when timeout expires, this returns
        while the in-flight cycle is still finishing; is_running turns False once it has.
        Returns True if the monitor thread has exited.
        """
        loop, thread = self._loop, self._thread
        if loop is None or thread is None:
            return True
        try:
            loop.call_soon_threadsafe(self.request_stop)
        except RuntimeError:
            # Loop already closed.
            pass
        if wait and thread is not threading.current_thread():
            thread.join(timeout)
        return not thread.is_alive()
