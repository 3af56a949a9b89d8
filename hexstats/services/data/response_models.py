"""Pydantic models for HEX subgraph responses.

Subgraphs encode BigInt fields as strings and omit fields freely, so every
numeric field is parsed leniently: missing or unparseable values become 0.
Only the stake id is left optional so normalizers can skip id-less records.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_big_int(value: Any) -> int:
    """Parse a subgraph BigInt (string, int or float) into an int."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        return 0


def parse_stake_id(value: Any) -> Optional[int]:
    """Parse a stake id, None when absent or not numeric."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        return None


def parse_big_decimal(value: Any) -> Decimal:
    """Parse a subgraph BigDecimal into a Decimal."""
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        return Decimal("0")


class GraphModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GraphStakeStart(GraphModel):
    """stakeStarts entity."""
    stake_id: Optional[int] = Field(default=None, alias="stakeId")
    staker_addr: str = Field(default="", alias="stakerAddr")
    staked_hearts: int = Field(default=0, alias="stakedHearts")
    stake_shares: int = Field(default=0, alias="stakeShares")
    stake_t_shares: Decimal = Field(default=Decimal("0"), alias="stakeTShares")
    staked_days: int = Field(default=0, alias="stakedDays")
    start_day: int = Field(default=0, alias="startDay")
    end_day: int = Field(default=0, alias="endDay")
    timestamp: int = 0
    is_auto_stake: bool = Field(default=False, alias="isAutoStake")
    transaction_hash: str = Field(default="", alias="transactionHash")
    block_number: int = Field(default=0, alias="blockNumber")

    @field_validator("stake_id", mode="before")
    @classmethod
    def parse_stake_id(cls, v):
        return parse_stake_id(v)

    @field_validator(
        "staked_hearts", "stake_shares", "staked_days", "start_day",
        "end_day", "timestamp", "block_number",
        mode="before",
    )
    @classmethod
    def parse_ints(cls, v):
        return parse_big_int(v)

    @field_validator("stake_t_shares", mode="before")
    @classmethod
    def parse_t_shares(cls, v):
        return parse_big_decimal(v)

    @field_validator("staker_addr", "transaction_hash", mode="before")
    @classmethod
    def parse_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("is_auto_stake", mode="before")
    @classmethod
    def parse_flag(cls, v):
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return bool(v)


class GraphStakeEnd(GraphModel):
    """stakeEnds entity."""
    stake_id: Optional[int] = Field(default=None, alias="stakeId")
    staker_addr: str = Field(default="", alias="stakerAddr")
    staked_hearts: int = Field(default=0, alias="stakedHearts")
    payout: int = 0
    penalty: int = 0
    served_days: int = Field(default=0, alias="servedDays")
    timestamp: int = 0
    transaction_hash: str = Field(default="", alias="transactionHash")
    block_number: int = Field(default=0, alias="blockNumber")

    @field_validator("stake_id", mode="before")
    @classmethod
    def parse_stake_id(cls, v):
        return parse_stake_id(v)

    @field_validator(
        "staked_hearts", "payout", "penalty", "served_days", "timestamp", "block_number",
        mode="before",
    )
    @classmethod
    def parse_ints(cls, v):
        return parse_big_int(v)

    @field_validator("staker_addr", "transaction_hash", mode="before")
    @classmethod
    def parse_text(cls, v):
        return "" if v is None else str(v)


class GraphGlobalInfo(GraphModel):
    """globalInfos entity."""
    hex_day: int = Field(default=0, alias="hexDay")
    stake_shares_total: int = Field(default=0, alias="stakeSharesTotal")
    stake_penalty_total: int = Field(default=0, alias="stakePenaltyTotal")
    locked_hearts_total: int = Field(default=0, alias="lockedHeartsTotal")
    latest_stake_id: int = Field(default=0, alias="latestStakeId")
    share_rate: int = Field(default=0, alias="shareRate")
    total_supply: int = Field(default=0, alias="totalSupply")
    timestamp: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def parse_ints(cls, v):
        return parse_big_int(v)
