"""Loader table binding each dataset kind to the store and the subgraphs."""

import asyncio
from typing import Dict

import structlog

from hexstats.services.analysis.active_set import derive_active
from hexstats.services.analysis.overview import build_overview
from hexstats.services.data.dataset_status import DatasetKey, DatasetKind
from hexstats.services.data.graph_client import HexGraphClient
from hexstats.services.data.records import GlobalInfo, StakingOverview, current_protocol_day
from hexstats.services.data.source_gate import DatasetLoader
from hexstats.services.data.store_client import StakingStore

logger = structlog.get_logger()


def _is_list(data) -> bool:
    return isinstance(data, list)


def _is_overview(data) -> bool:
    return isinstance(data, StakingOverview)


def _overview_is_empty(data: StakingOverview) -> bool:
    return data.total_active_stakes == 0


def _is_global_info(data) -> bool:
    return isinstance(data, GlobalInfo)


async def remote_overview(graph: HexGraphClient, key: DatasetKey, top_n: int) -> StakingOverview:
    """Overview computed from subgraph starts and ends.

    Global info is optional here; without it the protocol day is derived
    from the clock.
    """
    starts, ends, global_info = await asyncio.gather(
        graph.get_stake_starts(key.network),
        graph.get_stake_ends(key.network),
        graph.get_global_info(key.network),
        return_exceptions=True,
    )
    if isinstance(starts, BaseException):
        raise starts
    if isinstance(ends, BaseException):
        raise ends
    if isinstance(global_info, BaseException):
        logger.warning("Global info unavailable for overview", network=key.network.value, error=str(global_info))
        global_info = None

    current_day = global_info.hex_day if global_info else current_protocol_day()
    active = derive_active(starts, ends, current_day)
    return build_overview(key.network, active, global_info, top_n)


def build_dataset_loaders(
    store: StakingStore,
    graph: HexGraphClient,
    top_n: int = 50,
) -> Dict[DatasetKind, DatasetLoader]:
    """Loaders for every dataset kind served through the source gate."""

    def staker(key: DatasetKey) -> str:
        return key.scope or ""

    loaders: Dict[DatasetKind, DatasetLoader] = {
        DatasetKind.OVERVIEW: DatasetLoader(
            store=lambda key: store.get_staking_overview(key.network, top_n),
            remote=lambda key: remote_overview(graph, key, top_n),
            is_valid=_is_overview,
            is_empty=_overview_is_empty,
        ),
        DatasetKind.GLOBAL_INFO: DatasetLoader(
            store=lambda key: store.get_global_info(key.network),
            remote=lambda key: graph.get_global_info(key.network),
            is_valid=_is_global_info,
        ),
        DatasetKind.STAKE_STARTS: DatasetLoader(
            store=lambda key: store.get_stake_starts(key.network),
            remote=lambda key: graph.get_stake_starts(key.network),
            is_valid=_is_list,
        ),
        DatasetKind.STAKE_ENDS: DatasetLoader(
            store=lambda key: store.get_stake_ends(key.network),
            remote=lambda key: graph.get_stake_ends(key.network),
            is_valid=_is_list,
        ),
        DatasetKind.STAKER_STARTS: DatasetLoader(
            store=lambda key: store.get_staker_starts(key.network, staker(key)),
            remote=lambda key: graph.get_staker_starts(key.network, staker(key)),
            is_valid=_is_list,
        ),
        DatasetKind.STAKER_ENDS: DatasetLoader(
            store=lambda key: store.get_staker_ends(key.network, staker(key)),
            remote=lambda key: graph.get_staker_ends(key.network, staker(key)),
            is_valid=_is_list,
        ),
    }
    return loaders
