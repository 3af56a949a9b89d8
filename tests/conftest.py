"""Pytest configuration and fixtures for HEX staking analytics tests."""

import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add project root to Python path
project_path = Path(__file__).parent.parent
sys.path.insert(0, str(project_path))

# Set env vars before importing hexstats modules
# DATABASE_URL points to SQLite so imports never boot a Postgres engine during collection
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

from hexstats.services.data.records import Network, StakeEnd, StakeStart  # noqa: E402

HEX = 100_000_000


def build_start(
    stake_id: int,
    staked_hex: int = 1000,
    start_day: int = 0,
    staked_days: int = 365,
    network: Network = Network.ETHEREUM,
    staker_addr: str = "0x" + "a" * 40,
    **overrides,
) -> StakeStart:
    fields = dict(
        stake_id=stake_id,
        staker_addr=staker_addr,
        staked_hearts=staked_hex * HEX,
        staked_days=staked_days,
        start_day=start_day,
        end_day=start_day + staked_days,
        stake_shares=staked_hex * HEX,
        stake_t_shares=Decimal("1.5"),
        timestamp=1_600_000_000 + stake_id,
        network=network,
    )
    fields.update(overrides)
    return StakeStart(**fields)


def build_end(
    stake_id: int,
    network: Network = Network.ETHEREUM,
    staker_addr: str = "0x" + "a" * 40,
    **overrides,
) -> StakeEnd:
    fields = dict(stake_id=stake_id, staker_addr=staker_addr, network=network)
    fields.update(overrides)
    return StakeEnd(**fields)


@pytest.fixture
def make_start():
    """Factory for StakeStart records in whole HEX."""
    return build_start


@pytest.fixture
def make_end():
    """Factory for StakeEnd records."""
    return build_end
