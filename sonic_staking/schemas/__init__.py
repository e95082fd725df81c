# Dashboard schemas
from sonic_staking.schemas.dashboard import (
    DashboardSnapshot,
    DashboardSummary,
    EpochSnapshot,
    FetchState,
    FetchStatus,
    StakingInfo,
    Validator,
)

__all__ = [
    "DashboardSnapshot",
    "DashboardSummary",
    "EpochSnapshot",
    "FetchState",
    "FetchStatus",
    "StakingInfo",
    "Validator",
]
