"""Staking event and protocol snapshot tables."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from hexstats.core.database import Base

# Hearts and shares overflow BIGINT for protocol-wide totals.
HEARTS = Numeric(38, 0)


class HexStakeStart(Base):
    """A stake start event, kept current by the sync jobs."""

    __tablename__ = "hex_stake_starts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    network: Mapped[str] = mapped_column(String(16), nullable=False)
    stake_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    staker_addr: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    staked_hearts: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    stake_shares: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    stake_t_shares: Mapped[Decimal] = mapped_column(Numeric(30, 12), default=Decimal("0"))
    staked_days: Mapped[int] = mapped_column(Integer, default=1)
    start_day: Mapped[int] = mapped_column(Integer, default=0)
    end_day: Mapped[int] = mapped_column(Integer, default=0)

    timestamp: Mapped[int] = mapped_column(BigInteger, default=0)
    is_auto_stake: Mapped[bool] = mapped_column(Boolean, default=False)
    transaction_hash: Mapped[str] = mapped_column(String(80), default="")
    block_number: Mapped[int] = mapped_column(BigInteger, default=0)

    # Maintained by sync; the resolver still reconciles against hex_stake_ends
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_hex_stake_starts_network_stake", "network", "stake_id", unique=True),
        Index("ix_hex_stake_starts_network_active", "network", "is_active"),
        Index("ix_hex_stake_starts_end_day", "end_day"),
    )


class HexStakeEnd(Base):
    """A stake end event with realized payout and penalty."""

    __tablename__ = "hex_stake_ends"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    network: Mapped[str] = mapped_column(String(16), nullable=False)
    stake_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    staker_addr: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    staked_hearts: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    payout: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    penalty: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    served_days: Mapped[int] = mapped_column(Integer, default=0)

    timestamp: Mapped[int] = mapped_column(BigInteger, default=0)
    transaction_hash: Mapped[str] = mapped_column(String(80), default="")
    block_number: Mapped[int] = mapped_column(BigInteger, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_hex_stake_ends_network_stake", "network", "stake_id", unique=True),
    )


class HexGlobalInfo(Base):
    """Protocol-wide snapshot per network, one row per observed day."""

    __tablename__ = "hex_global_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    network: Mapped[str] = mapped_column(String(16), nullable=False)
    hex_day: Mapped[int] = mapped_column(Integer, nullable=False)

    stake_shares_total: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    stake_penalty_total: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    locked_hearts_total: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    latest_stake_id: Mapped[int] = mapped_column(BigInteger, default=0)
    share_rate: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    total_supply: Mapped[Decimal] = mapped_column(HEARTS, default=Decimal("0"))
    timestamp: Mapped[int] = mapped_column(BigInteger, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_hex_global_info_network_ts", "network", "timestamp"),
    )
