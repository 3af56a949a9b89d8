"""Staking analytics schemas."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from hexstats.services.analysis.recommendation import Confidence
from hexstats.services.analysis.risk_buckets import RiskLevel
from hexstats.services.data.records import Network


class NetworkSelection(str, Enum):
    """Networks an endstake timing request can cover."""
    ETHEREUM = "ethereum"
    PULSECHAIN = "pulsechain"
    BOTH = "both"

    def networks(self) -> List[Network]:
        if self is NetworkSelection.BOTH:
            return [Network.ETHEREUM, Network.PULSECHAIN]
        return [Network(self.value)]


class ActiveStakeResponse(BaseModel):
    """Active stake with its position at the current protocol day."""
    stake_id: int
    staker_addr: str
    network: Network
    staked_hearts: int
    staked_hex: Decimal
    staked_days: int
    start_day: int
    end_day: int
    stake_shares: int
    stake_t_shares: Decimal
    timestamp: int
    is_auto_stake: bool
    transaction_hash: str
    days_served: int
    days_left: int
    progress_pct: Decimal
    is_overdue: bool
    is_past_grace: bool

    model_config = {"from_attributes": True}


class GlobalInfoResponse(BaseModel):
    hex_day: int
    stake_shares_total: int
    stake_penalty_total: int
    locked_hearts_total: int
    latest_stake_id: int
    share_rate: int
    total_supply: int
    timestamp: int

    model_config = {"from_attributes": True}


class StakingOverviewResponse(BaseModel):
    """Active staking overview of one network."""
    network: Network
    source: str
    total_active_stakes: int = 0
    total_staked_hearts: int = 0
    average_stake_length: Decimal = Field(default=Decimal("0"))
    global_info: Optional[GlobalInfoResponse] = None
    top_stakes: List[ActiveStakeResponse] = []


class ActiveStakesResponse(BaseModel):
    network: Network
    current_day: int
    count: int
    stakes: List[ActiveStakeResponse]
    sources: Dict[str, str]


class EndingSoonResponse(BaseModel):
    """Stakes ending within a window of days."""
    network: Network
    current_day: int
    window_days: int
    count: int
    total_hearts: int
    total_hex: Decimal
    total_usd: Decimal
    price_usd: Decimal
    stakes: List[ActiveStakeResponse]
    sources: Dict[str, str]


class RiskBucketResponse(BaseModel):
    day: int
    total_hearts: int
    total_hex: Decimal
    stake_count: int
    average_stake_hearts: Decimal
    largest_stake_hearts: int
    risk_level: RiskLevel
    risk_factors: List[str]

    model_config = {"from_attributes": True}


class RecommendationResponse(BaseModel):
    day: int
    end_date: date
    risk_level: RiskLevel
    confidence: Confidence
    reasoning: List[str]
    risk_assessment: str
    market_impact: str
    market_share_pct: Decimal
    alternatives: List[int]

    model_config = {"from_attributes": True}


class EndstakeTimingRequest(BaseModel):
    """Caller's stake and preferred end day."""
    hex_amount: Decimal = Field(..., gt=0, description="Caller's stake in HEX")
    target_days: int = Field(..., ge=0, le=5555, description="Preferred end, in days from now")
    variance_days: int = Field(default=30, ge=0, le=365, description="Days either side of the target")
    network: NetworkSelection = NetworkSelection.BOTH


class EndstakeTimingResponse(BaseModel):
    hex_amount: Decimal
    target_days: int
    window_start: int
    window_end: int
    networks: List[Network]
    buckets: List[RiskBucketResponse]
    recommendation: Optional[RecommendationResponse] = None
    sources: Dict[str, str]


class StakeHistoryEntryResponse(BaseModel):
    stake_id: int
    staked_hearts: int
    staked_days: int
    start_day: int
    end_day: int
    stake_t_shares: Decimal
    is_active: bool
    days_served: int
    days_left: int
    payout: Optional[int] = None
    penalty: Optional[int] = None
    late_ending_days: int = 0
    realized_apy: Decimal = Field(default=Decimal("0"))


class StakerHistoryResponse(BaseModel):
    """Lifetime staking history of one address."""
    network: Network
    staker_addr: str
    current_day: int
    total_stakes: int
    active_stakes: int
    ended_stakes: int
    total_staked_hearts: int
    total_t_shares: Decimal
    average_stake_length: Decimal
    total_payouts: int
    total_penalties: int
    stakes: List[StakeHistoryEntryResponse]
    sources: Dict[str, str]


class NetworkMarketResponse(BaseModel):
    price_usd: Decimal
    tshare_price_usd: Optional[Decimal] = None
    payout_per_tshare: Optional[Decimal] = None
    staked_hex: Optional[Decimal] = None
    circulating_hex: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class LiveMarketResponse(BaseModel):
    """Current HEX market data per network."""
    available: bool
    ethereum: Optional[NetworkMarketResponse] = None
    pulsechain: Optional[NetworkMarketResponse] = None
