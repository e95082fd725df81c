"""Pydantic models for raw staking API payloads.

These mirror the GraphQL wire shape (camelCase, hex-encoded numbers) and
don't need to capture every field, just the ones the repository maps.
Numeric fields are kept as received; decoding happens in the repository.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WireModel(BaseModel):
    """Base for wire payloads: accept aliases and ignore unknown fields."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ==================== Staker Models ====================

class StakerInfoRecord(WireModel):
    """Optional off-chain display metadata for a staker."""
    name: Optional[str] = None
    logo_url: Optional[str] = Field(default=None, alias="logoUrl")

    @field_validator("name", "logo_url", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        # Display-only metadata; anything unusable is dropped
        if v is None or isinstance(v, (dict, list)):
            return None
        return str(v)


class StakerRecord(WireModel):
    """One entry of the ``stakers`` list."""
    id: Any = None
    staker_address: str = Field(default="", alias="stakerAddress")
    total_stake: Any = Field(default=None, alias="totalStake")
    stake: Any = None
    delegated_me: Any = Field(default=None, alias="delegatedMe")
    is_active: bool = Field(default=False, alias="isActive")
    is_cheater: bool = Field(default=False, alias="isCheater")
    is_offline: bool = Field(default=False, alias="isOffline")
    created_time: Any = Field(default=None, alias="createdTime")
    downtime: Any = None
    status: Any = None
    staker_info: Optional[StakerInfoRecord] = Field(default=None, alias="stakerInfo")

    @field_validator("is_active", "is_cheater", "is_offline", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        if v is None:
            return False
        if isinstance(v, str):
            return v.strip().lower() in ("true", "1", "0x1")
        return bool(v)

    @field_validator("staker_address", mode="before")
    @classmethod
    def coerce_address(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("staker_info", mode="before")
    @classmethod
    def drop_malformed_info(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None


class StakingInfoResponse(WireModel):
    """``data`` member of the staking info query."""
    stakers_num: Any = Field(default=None, alias="stakersNum")
    stakers: List[StakerRecord] = Field(default_factory=list)

    @field_validator("stakers", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> List[Any]:
        if v is None:
            return []
        if isinstance(v, list):
            return [item for item in v if isinstance(item, dict)]
        return [v] if isinstance(v, dict) else []


# ==================== Epoch Models ====================

class CurrentEpochResponse(WireModel):
    """``data`` member of the current epoch query."""
    current_epoch: Any = Field(default=None, alias="currentEpoch")


class EpochRecord(WireModel):
    """The ``epoch`` object, fields kept verbatim."""
    id: Optional[str] = None
    end_time: Optional[str] = Field(default=None, alias="endTime")
    duration: Optional[str] = None
    epoch_fee: Optional[str] = Field(default=None, alias="epochFee")
    total_supply: Optional[str] = Field(default=None, alias="totalSupply")

    @field_validator("id", "end_time", "duration", "epoch_fee", "total_supply", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if isinstance(v, int) and not isinstance(v, bool):
            return hex(v)
        return str(v)


class EpochResponse(WireModel):
    """``data`` member of the epoch query."""
    epoch: Optional[EpochRecord] = None
