"""APScheduler-driven polling of the dashboard snapshot.

A PollingController owns its scheduler: the consumer creates it, calls
start() and stop(), and reads ``state`` whenever it likes. The first refresh
runs immediately, then one runs every poll interval regardless of how long
the previous one took.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from sonic_staking.core.config import get_settings
from sonic_staking.schemas.dashboard import FetchState
from sonic_staking.services.dashboard.aggregator import DashboardAggregator

logger = structlog.get_logger()

POLL_JOB_ID = "dashboard_refresh"

StateListener = Callable[[FetchState], None]


class PollingController:
    """Keeps a FetchState fresh by rebuilding the snapshot on a fixed interval.

    State starts as loading. A successful cycle replaces it with
    ready(snapshot); a failed cycle replaces it with failed(message), dropping
    any earlier snapshot. After stop() no further transitions are published,
    even if a cycle was in flight.
    """

    def __init__(
        self,
        aggregator: Optional[DashboardAggregator] = None,
        interval_seconds: Optional[int] = None,
    ):
        settings = get_settings()
        self.aggregator = aggregator or DashboardAggregator()
        self.interval_seconds = interval_seconds or settings.poll_interval_seconds
        self._metrics_enabled = settings.enable_api_metrics
        self._scheduler: AsyncIOScheduler | None = None
        self._state = FetchState.loading()
        self._listeners: List[StateListener] = []
        self._inflight: Set[asyncio.Task] = set()
        # Bumped on stop(); cycles started under an older generation are discarded
        self._generation = 0

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback for state transitions. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def start(self) -> None:
        """Start polling. Must be called from a running event loop."""
        if self.running:
            logger.warning("Polling controller already running")
            return

        scheduler = AsyncIOScheduler(
            timezone="UTC",
            event_loop=asyncio.get_running_loop(),
        )
        scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=POLL_JOB_ID,
            name="Dashboard refresh",
            kwargs={"generation": self._generation},
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Polling controller started", interval_seconds=self.interval_seconds)

    def stop(self) -> None:
        """Stop polling and abandon any in-flight cycle without awaiting it."""
        self._generation += 1
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Polling controller stopped", abandoned_cycles=len(self._inflight))

    async def _tick(self, generation: int) -> None:
        # Each cycle runs as its own task so scheduler shutdown never interrupts it
        task = asyncio.create_task(self._run_cycle(generation))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run_cycle(self, generation: int) -> None:
        try:
            snapshot = await self.aggregator.build_snapshot()
        except Exception as e:
            if generation != self._generation:
                logger.debug("Discarding failed cycle after stop", error=str(e))
                return
            message = str(e) or type(e).__name__
            logger.error("Dashboard refresh failed", error=message)
            self._transition(FetchState.failed(message))
            if self._metrics_enabled:
                from sonic_staking.core.metrics import get_metrics
                await get_metrics().record_poll_failure(message)
            return

        if generation != self._generation:
            logger.debug("Discarding snapshot after stop")
            return

        self._transition(FetchState.ready(snapshot))
        if self._metrics_enabled:
            from sonic_staking.core.metrics import get_metrics
            await get_metrics().record_poll_success()

    def _transition(self, state: FetchState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener raised", status=state.status.value)
