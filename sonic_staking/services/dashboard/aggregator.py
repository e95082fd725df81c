"""Builds one consistent dashboard snapshot per poll cycle.

The three repository reads are independent, so they run concurrently. The
result is all-or-nothing: validator totals and epoch context are shown
together, and a half-populated dashboard would mislead.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

import structlog

from sonic_staking.schemas.dashboard import DashboardSnapshot, DashboardSummary
from sonic_staking.services.data.numeric import format_duration, wei_to_token
from sonic_staking.services.data.validator_repository import ValidatorRepository

logger = structlog.get_logger()


class DashboardAggregator:
    """Combines repository reads into a DashboardSnapshot."""

    def __init__(self, repository: Optional[ValidatorRepository] = None):
        self.repository = repository or ValidatorRepository()

    async def build_snapshot(self) -> DashboardSnapshot:
        """Fetch staking info, current epoch and epoch data concurrently.

        Raises the first failure; the remaining fetches are cancelled and no
        partial snapshot is returned.
        """
        tasks = [
            asyncio.create_task(self.repository.fetch_staking_info()),
            asyncio.create_task(self.repository.fetch_current_epoch()),
            asyncio.create_task(self.repository.fetch_epoch_data()),
        ]
        try:
            staking_info, current_epoch, epoch_data = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            raise

        snapshot = DashboardSnapshot(
            total_stake=staking_info.total_stake,
            total_delegated=staking_info.total_delegated,
            validators=staking_info.validators,
            current_epoch=current_epoch,
            epoch_data=epoch_data,
        )
        logger.info(
            "Dashboard snapshot built",
            validators=len(snapshot.validators),
            current_epoch=current_epoch,
            total_stake_tokens=round(wei_to_token(snapshot.total_stake), 2),
        )
        return snapshot


def summarize(snapshot: DashboardSnapshot) -> DashboardSummary:
    """Derive the display figures shown alongside the validator table."""
    validators = snapshot.validators

    total_staked = wei_to_token(sum(v.total_stake for v in validators))
    validator_stake = wei_to_token(sum(v.self_stake for v in validators))
    delegated_stake = wei_to_token(sum(v.delegated_stake for v in validators))

    epoch = snapshot.epoch_data
    epoch_end_time = None
    epoch_duration = None
    epoch_fee_tokens = 0.0
    if epoch is not None:
        if epoch.end_time_seconds:
            epoch_end_time = datetime.fromtimestamp(epoch.end_time_seconds, timezone.utc)
        epoch_duration = format_duration(epoch.duration_seconds)
        epoch_fee_tokens = wei_to_token(epoch.epoch_fee_wei)

    return DashboardSummary(
        total_staked_tokens=total_staked,
        validator_stake_tokens=validator_stake,
        delegated_stake_tokens=delegated_stake,
        stake_split=(
            ("Validator Stake", validator_stake),
            ("Delegator Stake", delegated_stake),
        ),
        validator_count=len(validators),
        active_count=sum(1 for v in validators if v.is_active),
        offline_count=sum(1 for v in validators if v.is_offline),
        cheater_count=sum(1 for v in validators if v.is_cheater),
        current_epoch=snapshot.current_epoch,
        epoch_end_time=epoch_end_time,
        epoch_duration=epoch_duration,
        epoch_fee_tokens=epoch_fee_tokens,
    )
