"""Staking analytics over gated data sources.

Loads the raw datasets of each network through the source gate, derives the
active set and feeds it to the pure analytics (risk buckets, recommendation,
ending-soon windows, staker history). Independent datasets and networks are
loaded concurrently; a failed network is logged and left out.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from hexstats.core.config import get_settings
from hexstats.services.analysis.active_set import derive_active
from hexstats.services.analysis.ending_soon import (
    EndingSoonSortKey,
    EndingSoonSummary,
    SortDirection,
    sort_stakes,
    summarize,
)
from hexstats.services.analysis.recommendation import Recommendation, recommend
from hexstats.services.analysis.risk_buckets import RiskBucket, bucketize
from hexstats.services.analysis.staker_history import StakerHistory, build_staker_history
from hexstats.services.data.availability import get_store_availability
from hexstats.services.data.dataset_status import (
    DatasetKey,
    DatasetKind,
    DataSource,
    get_dataset_status_map,
)
from hexstats.services.data.graph_client import get_graph_client
from hexstats.services.data.records import (
    ActiveStake,
    GlobalInfo,
    Network,
    StakingOverview,
    current_protocol_day,
)
from hexstats.services.data.source_gate import SourceGate
from hexstats.services.data.sources import build_dataset_loaders
from hexstats.services.data.store_client import StakingStore

logger = structlog.get_logger()


@dataclass
class ActiveStakeSet:
    """Active stakes of one network and where their inputs came from."""
    network: Network
    current_day: int
    stakes: List[ActiveStake] = field(default_factory=list)
    sources: Dict[str, DataSource] = field(default_factory=dict)


@dataclass
class EndstakeTiming:
    """Risk buckets and recommendation for ending a stake."""
    hex_amount: Decimal
    target_days: int
    window_start: int
    window_end: int
    networks: List[Network]
    buckets: List[RiskBucket] = field(default_factory=list)
    recommendation: Optional[Recommendation] = None
    sources: Dict[str, DataSource] = field(default_factory=dict)


class StakingAnalyticsService:
    """Entry point for staking analytics used by the API."""

    def __init__(self, gate: SourceGate):
        self.gate = gate

    async def current_day(self, network: Network) -> Tuple[int, DataSource]:
        """Protocol day from global info, or from the clock when unavailable."""
        info, source = await self.gate.resolve(DatasetKey(network, DatasetKind.GLOBAL_INFO))
        if isinstance(info, GlobalInfo) and info.hex_day > 0:
            return info.hex_day, source
        return current_protocol_day(), source

    async def get_overview(self, network: Network) -> Tuple[Optional[StakingOverview], DataSource]:
        return await self.gate.resolve(DatasetKey(network, DatasetKind.OVERVIEW))

    async def load_active(self, network: Network, current_day: Optional[int] = None) -> ActiveStakeSet:
        """Resolve starts, ends and protocol day concurrently and derive the active set."""
        starts_key = DatasetKey(network, DatasetKind.STAKE_STARTS)
        ends_key = DatasetKey(network, DatasetKind.STAKE_ENDS)

        (starts, starts_source), (ends, ends_source), (day, day_source) = await asyncio.gather(
            self.gate.resolve(starts_key),
            self.gate.resolve(ends_key),
            self.current_day(network),
        )
        if current_day is not None:
            day = current_day

        sources = {
            starts_key.name: starts_source,
            ends_key.name: ends_source,
            DatasetKey(network, DatasetKind.GLOBAL_INFO).name: day_source,
        }
        if starts is None:
            logger.warning("No stake starts available", network=network.value)
            return ActiveStakeSet(network=network, current_day=day, sources=sources)
        if ends is None:
            logger.warning("No stake ends available, ended stakes may show as active", network=network.value)

        active = derive_active(starts, ends or [], day)
        logger.info(
            "Active stakes derived",
            network=network.value,
            current_day=day,
            starts=len(starts),
            ends=len(ends or []),
            active=len(active),
        )
        return ActiveStakeSet(network=network, current_day=day, stakes=active, sources=sources)

    async def load_active_many(self, networks: Sequence[Network]) -> List[ActiveStakeSet]:
        """Active sets of several networks; failed networks are skipped."""
        results = await asyncio.gather(
            *(self.load_active(network) for network in networks),
            return_exceptions=True,
        )
        sets = []
        for network, result in zip(networks, results):
            if isinstance(result, BaseException):
                logger.error("Active set failed", network=network.value, error=str(result))
                continue
            sets.append(result)
        return sets

    async def active_stakes(
        self,
        network: Network,
        sort_key: EndingSoonSortKey = EndingSoonSortKey.STAKED_HEARTS,
        direction: SortDirection = SortDirection.DESC,
        price_usd: Decimal = Decimal("0"),
        current_day: Optional[int] = None,
    ) -> ActiveStakeSet:
        active_set = await self.load_active(network, current_day)
        active_set.stakes = sort_stakes(active_set.stakes, sort_key, direction, price_usd)
        return active_set

    async def endstake_timing(
        self,
        hex_amount: Decimal,
        target_days: int,
        variance_days: int,
        networks: Sequence[Network],
        today: Optional[date] = None,
    ) -> EndstakeTiming:
        """Bucket stakes around ``target_days`` and recommend an end day.

        Active stakes of all requested networks are merged before
        bucketizing; days from now mean the same on every network.
        """
        window_start = max(0, target_days - variance_days)
        window_end = target_days + variance_days

        sets = await self.load_active_many(networks)
        merged: List[ActiveStake] = []
        sources: Dict[str, DataSource] = {}
        for active_set in sets:
            merged.extend(active_set.stakes)
            sources.update(active_set.sources)

        buckets = bucketize(merged, window_start, window_end, hex_amount)
        return EndstakeTiming(
            hex_amount=hex_amount,
            target_days=target_days,
            window_start=window_start,
            window_end=window_end,
            networks=list(networks),
            buckets=buckets,
            recommendation=recommend(buckets, target_days, hex_amount, today),
            sources=sources,
        )

    async def ending_soon(
        self,
        network: Network,
        window_days: int,
        price_usd: Decimal = Decimal("0"),
        sort_key: EndingSoonSortKey = EndingSoonSortKey.END_DAY,
        direction: SortDirection = SortDirection.ASC,
        current_day: Optional[int] = None,
    ) -> Tuple[EndingSoonSummary, ActiveStakeSet]:
        active_set = await self.load_active(network, current_day)
        summary = summarize(active_set.stakes, active_set.current_day, window_days, price_usd)
        summary.stakes = sort_stakes(summary.stakes, sort_key, direction, price_usd)
        return summary, active_set

    async def staker_history(
        self,
        network: Network,
        staker_addr: str,
        current_day: Optional[int] = None,
    ) -> Tuple[StakerHistory, Dict[str, DataSource]]:
        address = staker_addr.lower()
        starts_key = DatasetKey(network, DatasetKind.STAKER_STARTS, scope=address)
        ends_key = DatasetKey(network, DatasetKind.STAKER_ENDS, scope=address)

        (starts, starts_source), (ends, ends_source), (day, day_source) = await asyncio.gather(
            self.gate.resolve(starts_key),
            self.gate.resolve(ends_key),
            self.current_day(network),
        )
        if current_day is not None:
            day = current_day

        history = build_staker_history(address, starts or [], ends or [], day)
        sources = {
            starts_key.name: starts_source,
            ends_key.name: ends_source,
            DatasetKey(network, DatasetKind.GLOBAL_INFO).name: day_source,
        }
        return history, sources


_staking_analytics: Optional[StakingAnalyticsService] = None


def get_staking_analytics() -> StakingAnalyticsService:
    """Get or create the analytics service with its source gate."""
    global _staking_analytics
    if _staking_analytics is None:
        settings = get_settings()
        availability = get_store_availability()
        gate = SourceGate(
            build_dataset_loaders(StakingStore(), get_graph_client(), settings.top_stakes_limit),
            availability,
            get_dataset_status_map(),
            retry_delay_seconds=settings.source_retry_delay_seconds,
        )
        availability.add_listener(gate.promote_remote_datasets)
        _staking_analytics = StakingAnalyticsService(gate)
    return _staking_analytics


async def close_staking_analytics() -> None:
    """Cancel background gate work. Called on shutdown."""
    global _staking_analytics
    if _staking_analytics is not None:
        await _staking_analytics.gate.close()
        _staking_analytics = None
