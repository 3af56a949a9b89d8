"""Map raw source shapes into canonical staking records.

Each source gets an explicit mapping. Missing numeric fields default to 0, a
missing or zero stake length becomes 1 day, and records without a stake id
are dropped.
"""

from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

import structlog
from pydantic import ValidationError

from hexstats.models.stake import HexGlobalInfo, HexStakeEnd, HexStakeStart
from hexstats.services.data.records import GlobalInfo, Network, StakeEnd, StakeStart
from hexstats.services.data.response_models import (
    GraphGlobalInfo,
    GraphStakeEnd,
    GraphStakeStart,
)

logger = structlog.get_logger()


def _stake_length(staked_days: int) -> int:
    return staked_days if staked_days and staked_days > 0 else 1


def _end_day(start_day: int, staked_days: int, end_day: int) -> int:
    return end_day if end_day else start_day + staked_days


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    return int(value)


# ==================== Remote subgraph ====================

def stake_start_from_graph(raw: Mapping[str, Any], network: Network) -> Optional[StakeStart]:
    """Normalize one ``stakeStarts`` entity, None when it has no stake id."""
    try:
        parsed = GraphStakeStart.model_validate(raw)
    except ValidationError as e:
        logger.warning("Unparseable stake start", network=network.value, error=str(e))
        return None
    if parsed.stake_id is None:
        return None

    staked_days = _stake_length(parsed.staked_days)
    return StakeStart(
        stake_id=parsed.stake_id,
        staker_addr=parsed.staker_addr.lower(),
        staked_hearts=parsed.staked_hearts,
        staked_days=staked_days,
        start_day=parsed.start_day,
        end_day=_end_day(parsed.start_day, staked_days, parsed.end_day),
        stake_shares=parsed.stake_shares,
        stake_t_shares=parsed.stake_t_shares,
        timestamp=parsed.timestamp,
        is_auto_stake=parsed.is_auto_stake,
        transaction_hash=parsed.transaction_hash,
        block_number=parsed.block_number,
        network=network,
    )


def stake_end_from_graph(raw: Mapping[str, Any], network: Network) -> Optional[StakeEnd]:
    """Normalize one ``stakeEnds`` entity, None when it has no stake id."""
    try:
        parsed = GraphStakeEnd.model_validate(raw)
    except ValidationError as e:
        logger.warning("Unparseable stake end", network=network.value, error=str(e))
        return None
    if parsed.stake_id is None:
        return None

    return StakeEnd(
        stake_id=parsed.stake_id,
        staker_addr=parsed.staker_addr.lower(),
        staked_hearts=parsed.staked_hearts,
        payout=parsed.payout,
        penalty=parsed.penalty,
        served_days=parsed.served_days,
        timestamp=parsed.timestamp,
        transaction_hash=parsed.transaction_hash,
        block_number=parsed.block_number,
        network=network,
    )


def global_info_from_graph(raw: Optional[Mapping[str, Any]]) -> Optional[GlobalInfo]:
    """Normalize a ``globalInfos`` entity."""
    if not raw:
        return None
    try:
        parsed = GraphGlobalInfo.model_validate(raw)
    except ValidationError as e:
        logger.warning("Unparseable global info", error=str(e))
        return None
    return GlobalInfo(**parsed.model_dump())


def stake_starts_from_graph(raws: Iterable[Mapping[str, Any]], network: Network) -> List[StakeStart]:
    """Normalize a page of stake starts, dropping records without an id."""
    starts = []
    skipped = 0
    for raw in raws:
        start = stake_start_from_graph(raw, network)
        if start is None:
            skipped += 1
            continue
        starts.append(start)
    if skipped:
        logger.warning("Skipped stake starts without id", network=network.value, skipped=skipped)
    return starts


def stake_ends_from_graph(raws: Iterable[Mapping[str, Any]], network: Network) -> List[StakeEnd]:
    """Normalize a page of stake ends, dropping records without an id."""
    ends = []
    skipped = 0
    for raw in raws:
        end = stake_end_from_graph(raw, network)
        if end is None:
            skipped += 1
            continue
        ends.append(end)
    if skipped:
        logger.warning("Skipped stake ends without id", network=network.value, skipped=skipped)
    return ends


# ==================== Persistent store ====================

def stake_start_from_row(row: HexStakeStart) -> StakeStart:
    staked_days = _stake_length(row.staked_days or 0)
    start_day = row.start_day or 0
    return StakeStart(
        stake_id=int(row.stake_id),
        staker_addr=(row.staker_addr or "").lower(),
        staked_hearts=_as_int(row.staked_hearts),
        staked_days=staked_days,
        start_day=start_day,
        end_day=_end_day(start_day, staked_days, row.end_day or 0),
        stake_shares=_as_int(row.stake_shares),
        stake_t_shares=Decimal(str(row.stake_t_shares or 0)),
        timestamp=_as_int(row.timestamp),
        is_auto_stake=bool(row.is_auto_stake),
        transaction_hash=row.transaction_hash or "",
        block_number=_as_int(row.block_number),
        network=Network(row.network),
    )


def stake_end_from_row(row: HexStakeEnd) -> StakeEnd:
    return StakeEnd(
        stake_id=int(row.stake_id),
        staker_addr=(row.staker_addr or "").lower(),
        staked_hearts=_as_int(row.staked_hearts),
        payout=_as_int(row.payout),
        penalty=_as_int(row.penalty),
        served_days=row.served_days or 0,
        timestamp=_as_int(row.timestamp),
        transaction_hash=row.transaction_hash or "",
        block_number=_as_int(row.block_number),
        network=Network(row.network),
    )


def global_info_from_row(row: Optional[HexGlobalInfo]) -> Optional[GlobalInfo]:
    if row is None:
        return None
    return GlobalInfo(
        hex_day=row.hex_day,
        stake_shares_total=_as_int(row.stake_shares_total),
        stake_penalty_total=_as_int(row.stake_penalty_total),
        locked_hearts_total=_as_int(row.locked_hearts_total),
        latest_stake_id=_as_int(row.latest_stake_id),
        share_rate=_as_int(row.share_rate),
        total_supply=_as_int(row.total_supply),
        timestamp=_as_int(row.timestamp),
    )
