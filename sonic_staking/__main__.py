"""Console runner: ``python -m sonic_staking``.

Polls the configured endpoint and logs a summary line on every transition
until interrupted.
"""

import asyncio
import signal

import structlog

from sonic_staking import __version__
from sonic_staking.core.config import get_settings
from sonic_staking.core.scheduler import PollingController
from sonic_staking.schemas.dashboard import FetchState
from sonic_staking.services.dashboard.aggregator import summarize
from sonic_staking.services.data.numeric import WEI_PER_TOKEN, format_compact

logger = structlog.get_logger()


def log_state(state: FetchState) -> None:
    """Log one line per state transition."""
    if state.is_failed:
        logger.error("Dashboard unavailable", error=state.error)
        return
    if not state.is_ready or state.snapshot is None:
        return

    snapshot = state.snapshot
    summary = summarize(snapshot)
    logger.info(
        "Dashboard refreshed",
        epoch=summary.current_epoch,
        validators=summary.validator_count,
        active=summary.active_count,
        offline=summary.offline_count,
        total_staked=format_compact(snapshot.total_stake // WEI_PER_TOKEN),
        validator_stake=format_compact(
            sum(v.self_stake for v in snapshot.validators) // WEI_PER_TOKEN
        ),
        delegated_stake=format_compact(snapshot.total_delegated // WEI_PER_TOKEN),
        epoch_duration=summary.epoch_duration,
        epoch_fee=round(summary.epoch_fee_tokens, 4),
    )


async def run() -> None:
    settings = get_settings()
    logger.info(
        "Starting Sonic staking feed",
        version=__version__,
        endpoint=settings.graphql_endpoint,
        environment=settings.environment,
    )

    controller = PollingController()
    controller.add_listener(log_state)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    controller.start()
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down...")
        controller.stop()


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
