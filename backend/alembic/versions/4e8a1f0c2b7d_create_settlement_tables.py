"""create settlement tables

Revision ID: 4e8a1f0c2b7d
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4e8a1f0c2b7d"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(12, 2)
TIMESTAMP = sa.DateTime(timezone=True)


def _id() -> sa.Column:
    return sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True)


def _created() -> sa.Column:
    return sa.Column("created", TIMESTAMP, nullable=False, server_default=sa.func.now())


def _tournament_fk(ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        "tournament_id",
        sa.BigInteger(),
        sa.ForeignKey("tournaments.id", ondelete=ondelete),
        nullable=False,
        index=True,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(), nullable=False, unique=True, index=True),
        sa.Column("name", sa.String(), nullable=False),
        _created(),
        sa.Column(
            "role",
            sa.Enum("USER", "ADMIN", name="user_role"),
            nullable=False,
            server_default="USER",
        ),
    )
    op.create_table(
        "user_profiles",
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "kyc_status",
            sa.Enum("PENDING", "VERIFIED", "REJECTED", name="kyc_status"),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("kyc_verified_at", TIMESTAMP, nullable=True),
        sa.Column("payment_destination", sa.String(), nullable=True),
    )
    op.create_table(
        "season_config",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("mode", sa.Enum("free", "paid", name="season_mode"), nullable=False),
        sa.Column(
            "prize_mode", sa.Enum("cash", "gift_card", name="prize_mode"), nullable=False
        ),
        sa.Column("free_prize_pool", MONEY, nullable=False, server_default="0"),
        sa.Column("updated", TIMESTAMP, nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "tournaments",
        _id(),
        sa.Column("name", sa.String(), nullable=False, index=True),
        sa.Column(
            "status",
            sa.Enum(
                "REGISTRATION", "IN_PROGRESS", "COMPLETED", "CANCELLED", name="tournament_status"
            ),
            nullable=False,
            server_default="REGISTRATION",
            index=True,
        ),
        sa.Column("entry_fee", MONEY, nullable=False),
        sa.Column("prize_pool", MONEY, nullable=False, server_default="0"),
        sa.Column("min_players", sa.Integer(), nullable=False),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("current_players", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("start_date", TIMESTAMP, nullable=False),
        sa.Column("lock_at", TIMESTAMP, nullable=False, index=True),
        sa.Column(
            "created_by",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _created(),
    )
    op.create_table(
        "entries",
        _id(),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        _tournament_fk(),
        sa.Column(
            "status",
            sa.Enum("PENDING", "CONFIRMED", "CANCELLED", name="entry_status"),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("payment_reference", sa.String(), nullable=True),
        sa.Column("paid_at", TIMESTAMP, nullable=True),
        _created(),
        sa.UniqueConstraint("user_id", "tournament_id"),
    )
    op.create_table(
        "matches",
        _id(),
        _tournament_fk(),
        sa.Column("round", sa.Integer(), nullable=False),
        sa.Column("player1_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("player2_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "result", sa.Enum("PLAYER1", "PLAYER2", "DRAW", name="match_result"), nullable=True
        ),
        sa.Column(
            "status",
            sa.Enum("SCHEDULED", "COMPLETED", name="match_status"),
            nullable=False,
            server_default="SCHEDULED",
        ),
        sa.Column("scheduled_at", TIMESTAMP, nullable=False),
        sa.Column("completed_at", TIMESTAMP, nullable=True),
    )
    op.create_index("ix_matches_tournament_id_round", "matches", ["tournament_id", "round"])
    op.create_table(
        "payout_schedules",
        _id(),
        _tournament_fk(),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("percent", sa.Numeric(5, 2), nullable=False),
        sa.UniqueConstraint("tournament_id", "position"),
        sa.CheckConstraint("position >= 1", name="ck_payout_schedules_position"),
        sa.CheckConstraint("percent > 0 AND percent <= 100", name="ck_payout_schedules_percent"),
    )
    op.create_table(
        "payouts",
        _id(),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False, index=True),
        _tournament_fk(ondelete="RESTRICT"),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("entitlement_amount", MONEY, nullable=True),
        sa.Column("placement", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING", "PROCESSING", "COMPLETED", "FAILED", "REJECTED", name="payout_status"
            ),
            nullable=False,
            server_default="PENDING",
            index=True,
        ),
        sa.Column("anti_cheat_hold", sa.Boolean(), nullable=False, server_default="f"),
        sa.Column("kyc_verified_at", TIMESTAMP, nullable=True),
        sa.Column("provider_transfer_id", sa.String(), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("processed_at", TIMESTAMP, nullable=True),
        _created(),
        sa.UniqueConstraint("user_id", "tournament_id"),
    )
    op.create_table(
        "prize_pool_ledger",
        _id(),
        _tournament_fk(ondelete="RESTRICT"),
        sa.Column(
            "type",
            sa.Enum(
                "ENTRY_FEE",
                "PLATFORM_FEE",
                "STRIPE_FEE",
                "PAYOUT",
                "REFUND",
                "SEED",
                name="ledger_entry_type",
            ),
            nullable=False,
        ),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("balance", MONEY, nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "related_user_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("related_payout_id", sa.BigInteger(), sa.ForeignKey("payouts.id"), nullable=True),
        _created(),
    )
    op.create_table(
        "anticheat_cases",
        _id(),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        _tournament_fk(),
        sa.Column(
            "status",
            sa.Enum(
                "SOFT_FLAG",
                "HARD_FLAG",
                "APPEALED",
                "RESOLVED",
                "DISMISSED",
                name="anticheat_case_status",
            ),
            nullable=False,
        ),
        _created(),
    )
    op.create_table(
        "audit_logs",
        _id(),
        sa.Column("action", sa.String(), nullable=False, index=True),
        sa.Column(
            "actor_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=True, index=True),
        sa.Column("before_state", sa.JSON(), nullable=True),
        sa.Column("after_state", sa.JSON(), nullable=True),
        _created(),
    )


def downgrade() -> None:
    for table in (
        "audit_logs",
        "anticheat_cases",
        "prize_pool_ledger",
        "payouts",
        "payout_schedules",
        "matches",
        "entries",
        "tournaments",
        "season_config",
        "user_profiles",
        "users",
    ):
        op.drop_table(table)

    for enum_name in (
        "anticheat_case_status",
        "ledger_entry_type",
        "payout_status",
        "match_status",
        "match_result",
        "entry_status",
        "tournament_status",
        "prize_mode",
        "season_mode",
        "kyc_status",
        "user_role",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
