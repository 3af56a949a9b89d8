"""Database models."""

from hexstats.models.stake import HexGlobalInfo, HexStakeEnd, HexStakeStart

__all__ = [
    "HexStakeStart",
    "HexStakeEnd",
    "HexGlobalInfo",
]

# Tables the store must expose before it is considered available.
STAKING_TABLES = (
    HexStakeStart.__tablename__,
    HexStakeEnd.__tablename__,
    HexGlobalInfo.__tablename__,
)
