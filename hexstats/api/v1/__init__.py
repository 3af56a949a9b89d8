"""API v1 router."""

from fastapi import APIRouter

from hexstats.api.v1 import health, market, recommendations, staking

router = APIRouter(prefix="/api/v1")

router.include_router(health.router, tags=["Health"])
router.include_router(staking.router, prefix="/staking", tags=["Staking"])
router.include_router(recommendations.router, prefix="/recommendations", tags=["Recommendations"])
router.include_router(market.router, prefix="/market", tags=["Market"])
