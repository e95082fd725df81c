"""Pytest configuration and fixtures for the Sonic staking feed tests."""

import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_path = Path(__file__).parent.parent
sys.path.insert(0, str(project_path))

# Keep tests off the real upstream even if a .env points elsewhere
os.environ.setdefault("GRAPHQL_ENDPOINT", "http://graphql.test/graphqlapi")


@pytest.fixture(autouse=True)
def fresh_settings_and_metrics():
    """Clear the settings cache and metrics singleton around every test."""
    from sonic_staking.core import config, metrics

    config.get_settings.cache_clear()
    metrics._metrics_collector = None
    yield
    config.get_settings.cache_clear()
    metrics._metrics_collector = None


@pytest.fixture
def make_validator():
    """Factory for Validator objects with sensible defaults."""
    from sonic_staking.schemas.dashboard import Validator

    def _make(validator_id: int = 1, **overrides):
        fields = {
            "id": validator_id,
            "address": f"0x{validator_id:040x}",
            "total_stake": 0,
            "self_stake": 0,
            "delegated_stake": 0,
            "is_active": True,
            "created_time": 1_700_000_000,
        }
        fields.update(overrides)
        return Validator(**fields)

    return _make


@pytest.fixture
def sample_snapshot(make_validator):
    """Two-validator snapshot: 2 and 3 tokens of total stake."""
    from sonic_staking.schemas.dashboard import DashboardSnapshot, EpochSnapshot

    validators = (
        make_validator(1, total_stake=2 * 10**18, self_stake=10**18, delegated_stake=10**18),
        make_validator(2, total_stake=3 * 10**18, self_stake=2 * 10**18, delegated_stake=10**18,
                       is_offline=True, is_active=False, downtime="100.00%"),
    )
    return DashboardSnapshot(
        total_stake=5 * 10**18,
        total_delegated=2 * 10**18,
        validators=validators,
        current_epoch=4242,
        epoch_data=EpochSnapshot(
            id="0x1092",
            end_time="0x65a0bc00",
            duration="0x257",
            epoch_fee="0xde0b6b3a7640000",
            total_supply="0x33b2e3c9fd0803ce8000000",
        ),
    )
