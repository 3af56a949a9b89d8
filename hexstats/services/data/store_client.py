"""Persistent store queries for staking data.

Reads the tables kept current by the sync jobs and returns canonical
records. Errors propagate to the source gate, which decides whether to fall
back to the remote subgraphs.
"""

from decimal import Decimal
from typing import List, Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hexstats.core.database import get_session_factory
from hexstats.models.stake import HexGlobalInfo, HexStakeEnd, HexStakeStart
from hexstats.services.analysis.active_set import to_active
from hexstats.services.data.normalizers import (
    global_info_from_row,
    stake_end_from_row,
    stake_start_from_row,
)
from hexstats.services.data.records import (
    GlobalInfo,
    Network,
    StakeEnd,
    StakeStart,
    StakingOverview,
    current_protocol_day,
)

logger = structlog.get_logger()


def _unended():
    """Filter for start rows with no matching end row."""
    ended = select(HexStakeEnd.id).where(
        HexStakeEnd.network == HexStakeStart.network,
        HexStakeEnd.stake_id == HexStakeStart.stake_id,
    )
    return ~ended.exists()


class StakingStore:
    """Async reader over the staking tables."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory or get_session_factory()

    async def get_global_info(self, network: Network) -> Optional[GlobalInfo]:
        """Latest protocol snapshot for a network."""
        async with self._sessions()() as session:
            stmt = (
                select(HexGlobalInfo)
                .where(HexGlobalInfo.network == network.value)
                .order_by(HexGlobalInfo.timestamp.desc())
                .limit(1)
            )
            result = await session.execute(stmt)
            return global_info_from_row(result.scalar_one_or_none())

    async def get_stake_starts(self, network: Network) -> List[StakeStart]:
        """Starts flagged active by sync, largest first."""
        async with self._sessions()() as session:
            stmt = (
                select(HexStakeStart)
                .where(
                    HexStakeStart.network == network.value,
                    HexStakeStart.is_active.is_(True),
                )
                .order_by(HexStakeStart.staked_hearts.desc())
            )
            result = await session.execute(stmt)
            return [stake_start_from_row(row) for row in result.scalars()]

    async def get_stake_ends(self, network: Network) -> List[StakeEnd]:
        """All recorded stake ends of a network, newest first."""
        async with self._sessions()() as session:
            stmt = (
                select(HexStakeEnd)
                .where(HexStakeEnd.network == network.value)
                .order_by(HexStakeEnd.timestamp.desc())
            )
            result = await session.execute(stmt)
            return [stake_end_from_row(row) for row in result.scalars()]

    async def get_staking_overview(self, network: Network, top_n: int = 50) -> StakingOverview:
        """Aggregate the active stakes of a network in SQL."""
        global_info = await self.get_global_info(network)
        current_day = global_info.hex_day if global_info else current_protocol_day()

        async with self._sessions()() as session:
            active_filter = (
                HexStakeStart.network == network.value,
                HexStakeStart.is_active.is_(True),
                _unended(),
            )
            totals = await session.execute(
                select(
                    func.count(HexStakeStart.id),
                    func.coalesce(func.sum(HexStakeStart.staked_hearts), 0),
                    func.coalesce(func.avg(HexStakeStart.staked_days), 0),
                ).where(*active_filter)
            )
            count, total_hearts, average_days = totals.one()

            top = await session.execute(
                select(HexStakeStart)
                .where(*active_filter)
                .order_by(HexStakeStart.staked_hearts.desc())
                .limit(top_n)
            )
            top_stakes = [
                to_active(stake_start_from_row(row), current_day)
                for row in top.scalars()
            ]

        return StakingOverview(
            network=network,
            total_active_stakes=int(count or 0),
            total_staked_hearts=int(total_hearts or 0),
            average_stake_length=Decimal(str(average_days or 0)),
            global_info=global_info,
            top_stakes=top_stakes,
        )

    async def get_staker_starts(self, network: Network, staker_addr: str) -> List[StakeStart]:
        async with self._sessions()() as session:
            stmt = (
                select(HexStakeStart)
                .where(
                    HexStakeStart.network == network.value,
                    func.lower(HexStakeStart.staker_addr) == staker_addr.lower(),
                )
                .order_by(HexStakeStart.timestamp.desc())
            )
            result = await session.execute(stmt)
            return [stake_start_from_row(row) for row in result.scalars()]

    async def get_staker_ends(self, network: Network, staker_addr: str) -> List[StakeEnd]:
        async with self._sessions()() as session:
            stmt = (
                select(HexStakeEnd)
                .where(
                    HexStakeEnd.network == network.value,
                    func.lower(HexStakeEnd.staker_addr) == staker_addr.lower(),
                )
                .order_by(HexStakeEnd.timestamp.desc())
            )
            result = await session.execute(stmt)
            return [stake_end_from_row(row) for row in result.scalars()]
