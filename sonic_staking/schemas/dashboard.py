"""Domain shapes exposed to dashboard consumers.

All models are frozen: a snapshot is built once per poll cycle and replaced
wholesale, never patched in place.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from sonic_staking.services.data.numeric import hex_to_int, parse_big_int


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Validator(FrozenModel):
    """One staking participant, normalized for display.

    Stake amounts are wei as Python ints; downtime is already formatted.
    """
    id: int = Field(ge=0)
    address: str
    total_stake: int = Field(default=0, ge=0)
    self_stake: int = Field(default=0, ge=0)
    delegated_stake: int = Field(default=0, ge=0)
    is_active: bool = False
    is_cheater: bool = False
    is_offline: bool = False
    created_time: int = 0
    downtime: str = "0.00%"
    name: Optional[str] = None
    logo_url: Optional[str] = None


class EpochSnapshot(FrozenModel):
    """Epoch record exactly as returned upstream (hex strings)."""
    id: Optional[str] = None
    end_time: Optional[str] = None
    duration: Optional[str] = None
    epoch_fee: Optional[str] = None
    total_supply: Optional[str] = None

    @property
    def epoch_number(self) -> int:
        return hex_to_int(self.id)

    @property
    def end_time_seconds(self) -> int:
        return hex_to_int(self.end_time)

    @property
    def duration_seconds(self) -> int:
        return hex_to_int(self.duration)

    @property
    def epoch_fee_wei(self) -> int:
        return parse_big_int(self.epoch_fee)

    @property
    def total_supply_wei(self) -> int:
        return parse_big_int(self.total_supply)


class StakingInfo(FrozenModel):
    """Validator set with integer stake totals."""
    total_stake: int = 0
    total_delegated: int = 0
    validators: Tuple[Validator, ...] = ()


class DashboardSnapshot(FrozenModel):
    """Everything the dashboard shows, fetched in one poll cycle."""
    total_stake: int
    total_delegated: int
    validators: Tuple[Validator, ...]
    current_epoch: int
    epoch_data: Optional[EpochSnapshot] = None
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DashboardSummary(FrozenModel):
    """View-ready figures derived from a DashboardSnapshot."""
    total_staked_tokens: float
    validator_stake_tokens: float
    delegated_stake_tokens: float
    stake_split: Tuple[Tuple[str, float], ...]
    validator_count: int
    active_count: int
    offline_count: int
    cheater_count: int
    current_epoch: int
    epoch_end_time: Optional[datetime] = None
    epoch_duration: Optional[str] = None
    epoch_fee_tokens: float = 0.0


# ==================== Fetch State ====================

class FetchStatus(str, Enum):
    """Lifecycle of the consumer's view."""
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchState:
    """Exactly one of loading, ready(snapshot) or failed(error)."""
    status: FetchStatus
    snapshot: Optional[DashboardSnapshot] = None
    error: Optional[str] = None

    @classmethod
    def loading(cls) -> "FetchState":
        return cls(status=FetchStatus.LOADING)

    @classmethod
    def ready(cls, snapshot: DashboardSnapshot) -> "FetchState":
        return cls(status=FetchStatus.READY, snapshot=snapshot)

    @classmethod
    def failed(cls, error: str) -> "FetchState":
        return cls(status=FetchStatus.FAILED, error=error)

    @property
    def is_loading(self) -> bool:
        return self.status == FetchStatus.LOADING

    @property
    def is_ready(self) -> bool:
        return self.status == FetchStatus.READY

    @property
    def is_failed(self) -> bool:
        return self.status == FetchStatus.FAILED
