"""Live HEX market data endpoint."""

from fastapi import APIRouter

from hexstats.schemas.staking import LiveMarketResponse, NetworkMarketResponse
from hexstats.services.data.hex_market_client import fetch_live_data

router = APIRouter()


@router.get("/live", response_model=LiveMarketResponse)
async def get_live_market() -> LiveMarketResponse:
    """Current HEX price and T-share figures on both chains."""
    live = await fetch_live_data()
    if live is None:
        return LiveMarketResponse(available=False)
    return LiveMarketResponse(
        available=True,
        ethereum=NetworkMarketResponse.model_validate(live.ethereum) if live.ethereum else None,
        pulsechain=NetworkMarketResponse.model_validate(live.pulsechain) if live.pulsechain else None,
    )
