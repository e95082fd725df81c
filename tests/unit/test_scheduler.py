"""Tests for the dashboard polling controller."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from sonic_staking.core.scheduler import POLL_JOB_ID, PollingController
from sonic_staking.schemas.dashboard import FetchStatus


async def wait_for(predicate, timeout: float = 2.0) -> bool:
    """Poll a predicate on the event loop until it holds or time runs out."""
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


def aggregator_returning(*results):
    aggregator = MagicMock()
    aggregator.build_snapshot = AsyncMock(side_effect=list(results))
    return aggregator


class TestInitialState:
    """Before start()."""

    def test_starts_loading(self):
        controller = PollingController(aggregator=MagicMock(), interval_seconds=15)

        assert controller.state.status == FetchStatus.LOADING
        assert controller.state.snapshot is None
        assert controller.state.error is None
        assert not controller.running

    def test_interval_defaults_to_settings(self):
        controller = PollingController(aggregator=MagicMock())
        assert controller.interval_seconds == 15


class TestTransitions:
    """Outcome of individual cycles."""

    @pytest.mark.asyncio
    async def test_success_then_failure_drops_snapshot(self, sample_snapshot):
        controller = PollingController(
            aggregator=aggregator_returning(sample_snapshot, RuntimeError("upstream down")),
            interval_seconds=15,
        )
        seen = []
        controller.add_listener(seen.append)

        await controller._run_cycle(controller._generation)
        assert controller.state.is_ready
        assert controller.state.snapshot is sample_snapshot

        await controller._run_cycle(controller._generation)
        assert controller.state.is_failed
        assert controller.state.error == "upstream down"
        assert controller.state.snapshot is None

        assert [s.status for s in seen] == [FetchStatus.READY, FetchStatus.FAILED]

    @pytest.mark.asyncio
    async def test_failure_then_success_recovers(self, sample_snapshot):
        controller = PollingController(
            aggregator=aggregator_returning(RuntimeError("timeout"), sample_snapshot),
            interval_seconds=15,
        )

        await controller._run_cycle(controller._generation)
        assert controller.state.is_failed

        await controller._run_cycle(controller._generation)
        assert controller.state.is_ready
        assert controller.state.error is None

    @pytest.mark.asyncio
    async def test_records_poll_metrics(self, sample_snapshot):
        from sonic_staking.core.metrics import get_metrics

        controller = PollingController(
            aggregator=aggregator_returning(RuntimeError("x"), RuntimeError("y"), sample_snapshot),
            interval_seconds=15,
        )
        await controller._run_cycle(controller._generation)
        await controller._run_cycle(controller._generation)
        assert get_metrics().get_poll_status()["consecutive_failures"] == 2

        await controller._run_cycle(controller._generation)
        status = get_metrics().get_poll_status()
        assert status["consecutive_failures"] == 0
        assert status["success_count"] == 1
        assert status["failure_count"] == 2

    @pytest.mark.asyncio
    async def test_listener_errors_do_not_break_polling(self, sample_snapshot):
        controller = PollingController(
            aggregator=aggregator_returning(sample_snapshot),
            interval_seconds=15,
        )
        seen = []
        controller.add_listener(MagicMock(side_effect=ValueError("bad listener")))
        controller.add_listener(seen.append)

        await controller._run_cycle(controller._generation)

        assert controller.state.is_ready
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, sample_snapshot):
        controller = PollingController(
            aggregator=aggregator_returning(sample_snapshot),
            interval_seconds=15,
        )
        seen = []
        remove = controller.add_listener(seen.append)
        remove()

        await controller._run_cycle(controller._generation)

        assert seen == []


class TestLifecycle:
    """start() and stop() against a real scheduler."""

    @pytest.mark.asyncio
    async def test_first_refresh_is_immediate(self, sample_snapshot):
        aggregator = aggregator_returning(sample_snapshot)
        controller = PollingController(aggregator=aggregator, interval_seconds=15)

        controller.start()
        try:
            assert controller.running
            # Well before the 15s period elapses
            assert await wait_for(lambda: controller.state.is_ready, timeout=2.0)
            assert aggregator.build_snapshot.await_count == 1
        finally:
            controller.stop()

        assert not controller.running

    @pytest.mark.asyncio
    async def test_schedules_fixed_interval_job(self, sample_snapshot):
        controller = PollingController(
            aggregator=aggregator_returning(sample_snapshot),
            interval_seconds=15,
        )

        controller.start()
        try:
            job = controller._scheduler.get_job(POLL_JOB_ID)
            assert job is not None
            assert job.trigger.interval.total_seconds() == 15
        finally:
            controller.stop()

    @pytest.mark.asyncio
    async def test_start_twice_is_a_noop(self, sample_snapshot):
        controller = PollingController(
            aggregator=aggregator_returning(sample_snapshot),
            interval_seconds=15,
        )

        controller.start()
        scheduler = controller._scheduler
        try:
            controller.start()
            assert controller._scheduler is scheduler
        finally:
            controller.stop()

    @pytest.mark.asyncio
    async def test_no_transition_after_stop(self, sample_snapshot):
        """A cycle in flight at stop() finishes but never publishes."""
        started = asyncio.Event()
        release = asyncio.Event()

        async def gated_build():
            started.set()
            await release.wait()
            return sample_snapshot

        aggregator = MagicMock()
        aggregator.build_snapshot = gated_build
        controller = PollingController(aggregator=aggregator, interval_seconds=15)
        seen = []
        controller.add_listener(seen.append)

        controller.start()
        await asyncio.wait_for(started.wait(), timeout=2.0)
        controller.stop()

        release.set()
        await wait_for(lambda: not controller._inflight, timeout=1.0)

        assert controller.state.is_loading
        assert seen == []

    @pytest.mark.asyncio
    async def test_failure_after_stop_is_suppressed(self):
        started = asyncio.Event()
        release = asyncio.Event()

        async def gated_build():
            started.set()
            await release.wait()
            raise RuntimeError("late failure")

        aggregator = MagicMock()
        aggregator.build_snapshot = gated_build
        controller = PollingController(aggregator=aggregator, interval_seconds=15)

        controller.start()
        await asyncio.wait_for(started.wait(), timeout=2.0)
        controller.stop()

        release.set()
        await wait_for(lambda: not controller._inflight, timeout=1.0)

        assert controller.state.is_loading

    def test_stop_without_start_is_safe(self):
        controller = PollingController(aggregator=MagicMock(), interval_seconds=15)
        controller.stop()
        assert not controller.running

    @pytest.mark.asyncio
    async def test_refreshes_again_after_interval(self, sample_snapshot):
        aggregator = MagicMock()
        aggregator.build_snapshot = AsyncMock(return_value=sample_snapshot)
        controller = PollingController(aggregator=aggregator, interval_seconds=1)

        controller.start()
        try:
            assert await wait_for(lambda: aggregator.build_snapshot.await_count >= 2, timeout=3.0)
            assert controller.state.is_ready
        finally:
            controller.stop()
