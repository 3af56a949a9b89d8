"""HEX staking subgraph client for Ethereum and PulseChain.

Ethereum is served by The Graph gateway (API key required). PulseChain has a
primary endpoint and fallbacks; the last endpoint that answered is tried
first on the next query.

Each query makes up to ``fetch_max_attempts`` passes over the endpoints with
linear backoff (attempt * ``fetch_backoff_seconds``) between passes.
Collections are paged ``graph_page_size`` at a time up to the subgraph's
``graph_max_skip`` ceiling. A page failing after the first one ends
pagination with the records collected so far.
"""

import asyncio
from datetime import timedelta
from typing import Any, Dict, List, Optional

import httpx
import structlog

from hexstats.core.config import Settings, get_settings
from hexstats.core.redis import cache
from hexstats.services.data.normalizers import (
    global_info_from_graph,
    stake_ends_from_graph,
    stake_starts_from_graph,
)
from hexstats.services.data.records import GlobalInfo, Network, StakeEnd, StakeStart

logger = structlog.get_logger()

STAKE_START_FIELDS = """
    id
    stakeId
    stakerAddr
    stakedHearts
    stakeShares
    stakeTShares
    stakedDays
    startDay
    endDay
    timestamp
    isAutoStake
    transactionHash
    blockNumber
"""

STAKE_END_FIELDS = """
    id
    stakeId
    stakerAddr
    payout
    stakedHearts
    penalty
    servedDays
    timestamp
    transactionHash
    blockNumber
"""

GLOBAL_INFO_QUERY = """
query GetCurrentGlobalInfo {
  globalInfos(first: 1, orderBy: timestamp, orderDirection: desc) {
    id
    hexDay
    stakeSharesTotal
    stakePenaltyTotal
    lockedHeartsTotal
    latestStakeId
    shareRate
    totalSupply
    timestamp
  }
}
"""

STAKER_STARTS_QUERY = f"""
query GetStakerStarts($stakerAddr: String!, $first: Int!) {{
  stakeStarts(where: {{ stakerAddr: $stakerAddr }}, orderBy: timestamp, orderDirection: desc, first: $first) {{{STAKE_START_FIELDS}  }}
}}
"""

STAKER_ENDS_QUERY = f"""
query GetStakerEnds($stakerAddr: String!, $first: Int!) {{
  stakeEnds(where: {{ stakerAddr: $stakerAddr }}, orderBy: timestamp, orderDirection: desc, first: $first) {{{STAKE_END_FIELDS}  }}
}}
"""

META_QUERY = "query Meta { _meta { block { number } } }"

STAKER_HISTORY_LIMIT = 1000


class GraphQueryError(Exception):
    """Subgraph query failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GraphResponseError(GraphQueryError):
    """Subgraph answered with GraphQL errors."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, status_code=200)
        self.errors = errors or []


def _collection_query(collection: str, fields: str, order_by: str) -> str:
    return (
        f"query Page($first: Int!, $skip: Int!) {{\n"
        f"  {collection}(first: $first, skip: $skip, orderBy: {order_by}, "
        f"orderDirection: desc) {{{fields}  }}\n"
        f"}}"
    )


class HexGraphClient:
    """Async client for the HEX staking subgraphs."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        use_cache: bool = True,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._use_cache = use_cache
        self._preferred: Dict[Network, str] = {}

    def endpoints(self, network: Network) -> List[str]:
        """Endpoints for a network, last working one first."""
        if network is Network.ETHEREUM:
            if not self.settings.graph_api_key:
                return []
            return [
                f"{self.settings.graph_gateway_url}/{self.settings.graph_api_key}"
                f"/subgraphs/id/{self.settings.ethereum_subgraph_id}"
            ]

        endpoints = list(self.settings.pulsechain_graph_endpoints)
        preferred = self._preferred.get(network)
        if preferred in endpoints:
            endpoints.remove(preferred)
            endpoints.insert(0, preferred)
        return endpoints

    def _redact(self, text: str) -> str:
        """Hide the gateway API key in logged URLs and errors."""
        key = self.settings.graph_api_key
        return text.replace(key, "***") if key else text

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.settings.api_connect_timeout_seconds,
            read=self.settings.api_read_timeout_seconds,
            write=10.0,
            pool=5.0,
        )

    async def _post(
        self,
        client: httpx.AsyncClient,
        url: str,
        query: str,
        variables: Dict[str, Any],
    ) -> Dict[str, Any]:
        response = await client.post(
            url,
            json={"query": query, "variables": variables},
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        if response.status_code != 200:
            raise GraphQueryError(
                f"Subgraph error {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        payload = response.json()
        if payload.get("errors"):
            raise GraphResponseError(
                f"Subgraph returned errors: {payload['errors'][0].get('message', 'unknown')}",
                errors=payload["errors"],
            )
        data = payload.get("data")
        if not isinstance(data, dict):
            raise GraphQueryError("Subgraph response has no data")
        return data

    async def query(
        self,
        network: Network,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Run a GraphQL query with endpoint fallback and bounded retry.

        Raises:
            GraphQueryError: When every attempt on every endpoint failed
        """
        endpoints = self.endpoints(network)
        if not endpoints:
            raise GraphQueryError(f"No subgraph endpoint configured for {network.value}")

        variables = variables or {}
        max_attempts = max(1, self.settings.fetch_max_attempts)
        last_error: Optional[Exception] = None

        async with httpx.AsyncClient(timeout=self._timeout(), transport=self._transport) as client:
            for attempt in range(1, max_attempts + 1):
                for url in endpoints:
                    try:
                        data = await self._post(client, url, query, variables)
                    except (httpx.HTTPError, GraphQueryError, ValueError) as e:
                        last_error = e
                        logger.debug(
                            "Subgraph endpoint failed",
                            network=network.value,
                            endpoint=self._redact(url),
                            attempt=attempt,
                            error=self._redact(str(e)),
                        )
                        continue
                    if self._preferred.get(network) != url:
                        logger.info("Using subgraph endpoint", network=network.value, endpoint=self._redact(url))
                        self._preferred[network] = url
                    return data

                if attempt < max_attempts:
                    backoff = attempt * self.settings.fetch_backoff_seconds
                    logger.warning(
                        "Transient error, retrying",
                        network=network.value,
                        attempt=attempt,
                        backoff_seconds=backoff,
                        error=self._redact(str(last_error)),
                    )
                    await asyncio.sleep(backoff)

        logger.error(
            "Subgraph query failed after retries",
            network=network.value,
            attempts=max_attempts,
            error=self._redact(str(last_error)),
        )
        raise GraphQueryError(
            f"Subgraph query failed after {max_attempts} attempts: {self._redact(str(last_error))}",
            status_code=getattr(last_error, "status_code", None),
        )

    async def paginate(
        self,
        network: Network,
        collection: str,
        fields: str,
        order_by: str,
    ) -> List[Dict[str, Any]]:
        """Fetch a collection page by page.

        Raises:
            GraphQueryError: Only when the first page fails
        """
        page_size = self.settings.graph_page_size
        query = _collection_query(collection, fields, order_by)
        records: List[Dict[str, Any]] = []
        skip = 0

        while skip <= self.settings.graph_max_skip:
            try:
                data = await self.query(network, query, {"first": page_size, "skip": skip})
            except GraphQueryError as e:
                if not records:
                    raise
                logger.warning(
                    "Pagination stopped early, keeping partial results",
                    network=network.value,
                    collection=collection,
                    records=len(records),
                    error=str(e),
                )
                break

            page = data.get(collection) or []
            records.extend(page)
            if len(page) < page_size:
                break
            skip += page_size
            await asyncio.sleep(self.settings.graph_page_delay_seconds)

        logger.info(
            "Fetched subgraph collection",
            network=network.value,
            collection=collection,
            records=len(records),
        )
        return records

    async def _cached(self, key: str, loader) -> Any:
        if not self._use_cache:
            return await loader()
        return await cache.get_or_set(
            key, loader, timedelta(seconds=self.settings.remote_cache_ttl_seconds)
        )

    # ==================== Staking datasets ====================

    async def get_global_info(self, network: Network) -> Optional[GlobalInfo]:
        async def load():
            data = await self.query(network, GLOBAL_INFO_QUERY)
            infos = data.get("globalInfos") or []
            return infos[0] if infos else None

        raw = await self._cached(f"graph:{network.value}:global_info", load)
        return global_info_from_graph(raw)

    async def get_stake_starts(self, network: Network) -> List[StakeStart]:
        """Stake starts, largest first, up to the pagination ceiling."""
        raws = await self._cached(
            f"graph:{network.value}:stake_starts",
            lambda: self.paginate(network, "stakeStarts", STAKE_START_FIELDS, "stakedHearts"),
        )
        return stake_starts_from_graph(raws, network)

    async def get_stake_ends(self, network: Network) -> List[StakeEnd]:
        """Most recent stake ends, up to the pagination ceiling."""
        raws = await self._cached(
            f"graph:{network.value}:stake_ends",
            lambda: self.paginate(network, "stakeEnds", STAKE_END_FIELDS, "timestamp"),
        )
        return stake_ends_from_graph(raws, network)

    async def get_staker_starts(self, network: Network, staker_addr: str) -> List[StakeStart]:
        data = await self.query(
            network,
            STAKER_STARTS_QUERY,
            {"stakerAddr": staker_addr.lower(), "first": STAKER_HISTORY_LIMIT},
        )
        return stake_starts_from_graph(data.get("stakeStarts") or [], network)

    async def get_staker_ends(self, network: Network, staker_addr: str) -> List[StakeEnd]:
        data = await self.query(
            network,
            STAKER_ENDS_QUERY,
            {"stakerAddr": staker_addr.lower(), "first": STAKER_HISTORY_LIMIT},
        )
        return stake_ends_from_graph(data.get("stakeEnds") or [], network)

    async def health_check(self, network: Network) -> bool:
        """Whether any endpoint of the network answers."""
        try:
            await self.query(network, META_QUERY)
            return True
        except GraphQueryError:
            return False


_graph_client: Optional[HexGraphClient] = None


def get_graph_client() -> HexGraphClient:
    """Get or create the subgraph client singleton."""
    global _graph_client
    if _graph_client is None:
        _graph_client = HexGraphClient()
    return _graph_client
