"""Canonical staking records shared by every data source.

Both the persistent store and the remote subgraphs are normalized into these
immutable types before any analytics run. Amounts are integer hearts.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

HEARTS_PER_HEX = 100_000_000

# Protocol day 0 starts at the contract launch (2019-12-03 00:00 UTC).
HEX_LAUNCH_TIMESTAMP = 1575331200
SECONDS_PER_DAY = 86400

# Days after the end day before late-end penalties start accruing.
LATE_END_GRACE_DAYS = 14


class Network(str, Enum):
    """Chains carrying the HEX contract."""
    ETHEREUM = "ethereum"
    PULSECHAIN = "pulsechain"


def hearts_to_hex(hearts: int) -> Decimal:
    """Convert integer hearts to HEX."""
    return Decimal(hearts) / HEARTS_PER_HEX


def current_protocol_day(now: Optional[datetime] = None) -> int:
    """Protocol day for a wall-clock time, used when global info is missing."""
    now = now or datetime.now(timezone.utc)
    return max(0, (int(now.timestamp()) - HEX_LAUNCH_TIMESTAMP) // SECONDS_PER_DAY)


@dataclass(frozen=True)
class StakeStart:
    """A stake as recorded when it was started."""
    stake_id: int
    staker_addr: str
    staked_hearts: int
    staked_days: int
    start_day: int
    end_day: int
    stake_shares: int = 0
    stake_t_shares: Decimal = Decimal("0")
    timestamp: int = 0
    is_auto_stake: bool = False
    transaction_hash: str = ""
    block_number: int = 0
    network: Network = Network.ETHEREUM


@dataclass(frozen=True)
class StakeEnd:
    """A stake that has been ended, with its realized payout and penalty."""
    stake_id: int
    staker_addr: str
    staked_hearts: int = 0
    payout: int = 0
    penalty: int = 0
    served_days: int = 0
    timestamp: int = 0
    transaction_hash: str = ""
    block_number: int = 0
    network: Network = Network.ETHEREUM


@dataclass(frozen=True)
class ActiveStake(StakeStart):
    """A started stake with no matching end, positioned at a protocol day."""
    days_served: int = 0
    days_left: int = 0
    is_active: bool = True

    @property
    def is_overdue(self) -> bool:
        return self.days_left < 0

    @property
    def is_past_grace(self) -> bool:
        return self.days_left < -LATE_END_GRACE_DAYS

    @property
    def progress_pct(self) -> Decimal:
        if self.staked_days <= 0:
            return Decimal("0")
        return Decimal(self.days_served) * 100 / Decimal(self.staked_days)

    @property
    def staked_hex(self) -> Decimal:
        return hearts_to_hex(self.staked_hearts)


@dataclass(frozen=True)
class GlobalInfo:
    """Latest protocol-wide snapshot."""
    hex_day: int
    stake_shares_total: int = 0
    stake_penalty_total: int = 0
    locked_hearts_total: int = 0
    latest_stake_id: int = 0
    share_rate: int = 0
    total_supply: int = 0
    timestamp: int = 0


@dataclass(frozen=True)
class StakingOverview:
    """Aggregate view of the active stakes on one network."""
    network: Network
    total_active_stakes: int
    total_staked_hearts: int
    average_stake_length: Decimal
    global_info: Optional[GlobalInfo] = None
    top_stakes: List[ActiveStake] = field(default_factory=list)
