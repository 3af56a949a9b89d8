"""Create HEX staking tables.

Revision ID: a1c9e2f4b7d0
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "a1c9e2f4b7d0"
down_revision = None
branch_labels = None
depends_on = None

HEARTS = sa.Numeric(38, 0)


def upgrade() -> None:
    op.create_table(
        "hex_stake_starts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("network", sa.String(16), nullable=False),
        sa.Column("stake_id", sa.BigInteger, nullable=False),
        sa.Column("staker_addr", sa.String(64), nullable=False),
        sa.Column("staked_hearts", HEARTS, server_default="0"),
        sa.Column("stake_shares", HEARTS, server_default="0"),
        sa.Column("stake_t_shares", sa.Numeric(30, 12), server_default="0"),
        sa.Column("staked_days", sa.Integer, server_default="1"),
        sa.Column("start_day", sa.Integer, server_default="0"),
        sa.Column("end_day", sa.Integer, server_default="0"),
        sa.Column("timestamp", sa.BigInteger, server_default="0"),
        sa.Column("is_auto_stake", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("transaction_hash", sa.String(80), server_default=""),
        sa.Column("block_number", sa.BigInteger, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_hex_stake_starts_network_stake", "hex_stake_starts", ["network", "stake_id"], unique=True
    )
    op.create_index("ix_hex_stake_starts_network_active", "hex_stake_starts", ["network", "is_active"])
    op.create_index("ix_hex_stake_starts_end_day", "hex_stake_starts", ["end_day"])
    op.create_index("ix_hex_stake_starts_staker_addr", "hex_stake_starts", ["staker_addr"])

    op.create_table(
        "hex_stake_ends",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("network", sa.String(16), nullable=False),
        sa.Column("stake_id", sa.BigInteger, nullable=False),
        sa.Column("staker_addr", sa.String(64), nullable=False),
        sa.Column("staked_hearts", HEARTS, server_default="0"),
        sa.Column("payout", HEARTS, server_default="0"),
        sa.Column("penalty", HEARTS, server_default="0"),
        sa.Column("served_days", sa.Integer, server_default="0"),
        sa.Column("timestamp", sa.BigInteger, server_default="0"),
        sa.Column("transaction_hash", sa.String(80), server_default=""),
        sa.Column("block_number", sa.BigInteger, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_hex_stake_ends_network_stake", "hex_stake_ends", ["network", "stake_id"], unique=True
    )
    op.create_index("ix_hex_stake_ends_staker_addr", "hex_stake_ends", ["staker_addr"])

    op.create_table(
        "hex_global_info",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("network", sa.String(16), nullable=False),
        sa.Column("hex_day", sa.Integer, nullable=False),
        sa.Column("stake_shares_total", HEARTS, server_default="0"),
        sa.Column("stake_penalty_total", HEARTS, server_default="0"),
        sa.Column("locked_hearts_total", HEARTS, server_default="0"),
        sa.Column("latest_stake_id", sa.BigInteger, server_default="0"),
        sa.Column("share_rate", HEARTS, server_default="0"),
        sa.Column("total_supply", HEARTS, server_default="0"),
        sa.Column("timestamp", sa.BigInteger, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_hex_global_info_network_ts", "hex_global_info", ["network", "timestamp"])


def downgrade() -> None:
    op.drop_index("ix_hex_global_info_network_ts", table_name="hex_global_info")
    op.drop_table("hex_global_info")

    op.drop_index("ix_hex_stake_ends_staker_addr", table_name="hex_stake_ends")
    op.drop_index("ix_hex_stake_ends_network_stake", table_name="hex_stake_ends")
    op.drop_table("hex_stake_ends")

    op.drop_index("ix_hex_stake_starts_staker_addr", table_name="hex_stake_starts")
    op.drop_index("ix_hex_stake_starts_end_day", table_name="hex_stake_starts")
    op.drop_index("ix_hex_stake_starts_network_active", table_name="hex_stake_starts")
    op.drop_index("ix_hex_stake_starts_network_stake", table_name="hex_stake_starts")
    op.drop_table("hex_stake_starts")
