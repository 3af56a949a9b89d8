"""HEX live market data from hexdailystats.

Uses the ``/livedata`` feed for the current HEX price, T-share price and
payout per T-share on both chains. Returns None on any failure so callers
can degrade to zero-valued USD totals.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import httpx
import structlog

from hexstats.core.config import Settings, get_settings
from hexstats.core.redis import cache
from hexstats.services.data.records import Network

logger = structlog.get_logger()

CACHE_KEY = "hexdailystats:livedata"


@dataclass
class NetworkMarket:
    """Market figures of HEX on one chain."""
    price_usd: Decimal
    tshare_price_usd: Optional[Decimal] = None
    payout_per_tshare: Optional[Decimal] = None
    staked_hex: Optional[Decimal] = None
    circulating_hex: Optional[Decimal] = None


@dataclass
class HexLiveData:
    ethereum: Optional[NetworkMarket] = None
    pulsechain: Optional[NetworkMarket] = None

    def for_network(self, network: Network) -> Optional[NetworkMarket]:
        return self.ethereum if network is Network.ETHEREUM else self.pulsechain

    def price(self, network: Network) -> Decimal:
        """Price on a network, 0 when unknown."""
        market = self.for_network(network)
        return market.price_usd if market else Decimal("0")


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _network_market(data: Dict[str, Any], suffix: str) -> Optional[NetworkMarket]:
    price = _decimal(data.get(f"price{suffix}"))
    if price is None or price <= 0:
        return None
    return NetworkMarket(
        price_usd=price,
        tshare_price_usd=_decimal(data.get(f"tsharePrice{suffix}")),
        payout_per_tshare=_decimal(data.get(f"payoutPerTshare{suffix}")),
        staked_hex=_decimal(data.get(f"stakedHEX{suffix}")),
        circulating_hex=_decimal(data.get(f"circulatingHEX{suffix}")),
    )


def parse_live_data(data: Dict[str, Any]) -> HexLiveData:
    """Split the flat feed into per-network figures."""
    return HexLiveData(
        ethereum=_network_market(data, ""),
        pulsechain=_network_market(data, "_Pulsechain"),
    )


async def _request_live_data(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport],
) -> Optional[Any]:
    """GET ``/livedata`` with bounded retry. Returns the decoded body or None."""
    max_attempts = max(1, settings.fetch_max_attempts)
    url = f"{settings.hexdailystats_base_url}/livedata"

    async with httpx.AsyncClient(timeout=httpx.Timeout(10.0), transport=transport) as client:
        for attempt in range(1, max_attempts + 1):
            start = time.monotonic()
            try:
                response = await client.get(url, headers={"Accept": "application/json"})
                latency_ms = (time.monotonic() - start) * 1000
                if response.status_code == 200:
                    data = response.json()
                    logger.debug("HEX live feed answered", attempt=attempt, latency_ms=round(latency_ms, 1))
                    return data
                error = f"status {response.status_code}: {response.text[:200]}"
            except (httpx.HTTPError, ValueError) as e:
                error = str(e)

            if attempt < max_attempts:
                backoff = attempt * settings.fetch_backoff_seconds
                logger.warning(
                    "Transient error, retrying",
                    source="hexdailystats",
                    attempt=attempt,
                    backoff_seconds=backoff,
                    error=error,
                )
                await asyncio.sleep(backoff)

    logger.warning("HEX live feed request failed", attempts=max_attempts, error=error)
    return None


async def fetch_live_data(transport: Optional[httpx.AsyncBaseTransport] = None) -> Optional[HexLiveData]:
    """Fetch current HEX market data.

    Makes up to ``fetch_max_attempts`` requests with linear backoff.
    Returns HexLiveData on success, None on failure.
    Results are cached in Redis for ``live_data_cache_ttl_seconds``.
    """
    settings = get_settings()

    cached = await cache.get(CACHE_KEY)
    if cached is not None:
        return parse_live_data(cached)

    data = await _request_live_data(settings, transport)
    if data is None:
        return None

    if not isinstance(data, dict):
        logger.warning("HEX live feed returned unexpected payload", payload_type=type(data).__name__)
        return None

    result = parse_live_data(data)
    if result.ethereum is None and result.pulsechain is None:
        logger.warning("HEX live feed returned no prices")
        return None

    await cache.set(CACHE_KEY, data, timedelta(seconds=settings.live_data_cache_ttl_seconds))
    logger.info(
        "HEX live data fetched",
        ethereum_price=float(result.price(Network.ETHEREUM)),
        pulsechain_price=float(result.price(Network.PULSECHAIN)),
    )
    return result
