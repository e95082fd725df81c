"""Read operations for validator and epoch state.

Each operation issues one GraphQL query and normalizes the result. Terminal
client errors propagate unchanged; there is no fallback between operations.
"""

from typing import Any, Optional

import structlog

from sonic_staking.schemas.dashboard import EpochSnapshot, StakingInfo, Validator
from sonic_staking.services.data.graphql_client import GraphQLClient
from sonic_staking.services.data.numeric import format_downtime, hex_to_int, parse_big_int
from sonic_staking.services.data.response_models import (
    CurrentEpochResponse,
    EpochResponse,
    StakerRecord,
    StakingInfoResponse,
)

logger = structlog.get_logger()

GET_STAKING_INFO = """
  query {
    stakersNum
    stakers {
      id
      stakerAddress
      totalStake
      stake
      delegatedMe
      isActive
      isCheater
      isOffline
      createdTime
      downtime
      status
      stakerInfo {
        name
        logoUrl
      }
    }
  }
"""

GET_CURRENT_EPOCH = """
  query {
    currentEpoch
  }
"""

GET_EPOCH_DATA = """
  query {
    epoch {
      id
      endTime
      duration
      epochFee
      totalSupply
    }
  }
"""


def _decode_hex(value: Any) -> int:
    """Hex strings decode as hex; ints from a looser resolver pass through."""
    if isinstance(value, str):
        return hex_to_int(value)
    return parse_big_int(value)


def to_validator(record: StakerRecord) -> Validator:
    """Map a raw staker record to the Validator shape.

    Missing stake fields become 0 and a missing downtime is treated as 0x0.
    """
    info = record.staker_info
    return Validator(
        id=_decode_hex(record.id),
        address=record.staker_address,
        total_stake=parse_big_int(record.total_stake),
        self_stake=parse_big_int(record.stake),
        delegated_stake=parse_big_int(record.delegated_me),
        is_active=record.is_active,
        is_cheater=record.is_cheater,
        is_offline=record.is_offline,
        created_time=parse_big_int(record.created_time),
        downtime=format_downtime(record.downtime or "0x0", record.is_offline, record.is_active),
        name=info.name if info else None,
        logo_url=info.logo_url if info else None,
    )


class ValidatorRepository:
    """Fetches staking state through a retrying GraphQL client."""

    def __init__(self, client: Optional[GraphQLClient] = None):
        self.client = client or GraphQLClient()

    async def fetch_staking_info(self) -> StakingInfo:
        """Fetch all validators and sum their stake in integer wei."""
        data = await self.client.execute(GET_STAKING_INFO, query_name="staking_info")
        response = StakingInfoResponse.model_validate(data or {})

        validators = tuple(to_validator(record) for record in response.stakers)
        total_stake = sum(v.total_stake for v in validators)
        total_delegated = sum(v.delegated_stake for v in validators)

        logger.debug(
            "Staking info fetched",
            validators=len(validators),
            total_stake=str(total_stake),
            total_delegated=str(total_delegated),
        )
        return StakingInfo(
            total_stake=total_stake,
            total_delegated=total_delegated,
            validators=validators,
        )

    async def fetch_current_epoch(self) -> int:
        """Fetch and decode the current epoch number."""
        data = await self.client.execute(GET_CURRENT_EPOCH, query_name="current_epoch")
        response = CurrentEpochResponse.model_validate(data or {})
        return _decode_hex(response.current_epoch)

    async def fetch_epoch_data(self) -> Optional[EpochSnapshot]:
        """Fetch the latest sealed epoch record, or None if upstream has none."""
        data = await self.client.execute(GET_EPOCH_DATA, query_name="epoch_data")
        response = EpochResponse.model_validate(data or {})
        if response.epoch is None:
            return None
        return EpochSnapshot(**response.epoch.model_dump())
