from sqlalchemy import Column, ForeignKey, Integer, String, Table, UniqueConstraint, func
from sqlalchemy.orm import declarative_base  # type: ignore[attr-defined]
from sqlalchemy.sql.sqltypes import JSON, BigInteger, Boolean, DateTime, Enum, Numeric, Text

Base = declarative_base()
metadata = Base.metadata
DateTimeTZ = DateTime(timezone=True)
Money = Numeric(12, 2)

users = Table(
    "users",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("email", String, nullable=False, index=True, unique=True),
    Column("name", String, nullable=False),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    Column(
        "role",
        Enum("USER", "ADMIN", name="user_role"),
        nullable=False,
        server_default="USER",
    ),
)

user_profiles = Table(
    "user_profiles",
    metadata,
    Column("user_id", BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "kyc_status",
        Enum("PENDING", "VERIFIED", "REJECTED", name="kyc_status"),
        nullable=False,
        server_default="PENDING",
    ),
    Column("kyc_verified_at", DateTimeTZ, nullable=True),
    Column("payment_destination", String, nullable=True),
)

season_config = Table(
    "season_config",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("mode", Enum("free", "paid", name="season_mode"), nullable=False),
    Column("prize_mode", Enum("cash", "gift_card", name="prize_mode"), nullable=False),
    Column("free_prize_pool", Money, nullable=False, server_default="0"),
    Column("updated", DateTimeTZ, nullable=False, server_default=func.now()),
)

tournaments = Table(
    "tournaments",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("name", String, nullable=False, index=True),
    Column(
        "status",
        Enum(
            "REGISTRATION",
            "IN_PROGRESS",
            "COMPLETED",
            "CANCELLED",
            name="tournament_status",
        ),
        nullable=False,
        server_default="REGISTRATION",
        index=True,
    ),
    Column("entry_fee", Money, nullable=False),
    Column("prize_pool", Money, nullable=False, server_default="0"),
    Column("min_players", Integer, nullable=False),
    Column("max_players", Integer, nullable=False),
    Column("current_players", Integer, nullable=False, server_default="0"),
    Column("start_date", DateTimeTZ, nullable=False),
    Column("lock_at", DateTimeTZ, nullable=False, index=True),
    Column("created_by", BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)

entries = Table(
    "entries",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("user_id", BigInteger, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False),
    Column(
        "tournament_id",
        BigInteger,
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    ),
    Column(
        "status",
        Enum("PENDING", "CONFIRMED", "CANCELLED", name="entry_status"),
        nullable=False,
        server_default="PENDING",
    ),
    Column("payment_reference", String, nullable=True),
    Column("paid_at", DateTimeTZ, nullable=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    UniqueConstraint("user_id", "tournament_id"),
)

matches = Table(
    "matches",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column(
        "tournament_id",
        BigInteger,
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    ),
    Column("round", Integer, nullable=False),
    Column("player1_id", BigInteger, ForeignKey("users.id"), nullable=False),
    Column("player2_id", BigInteger, ForeignKey("users.id"), nullable=True),
    Column("result", Enum("PLAYER1", "PLAYER2", "DRAW", name="match_result"), nullable=True),
    Column(
        "status",
        Enum("SCHEDULED", "COMPLETED", name="match_status"),
        nullable=False,
        server_default="SCHEDULED",
    ),
    Column("scheduled_at", DateTimeTZ, nullable=False),
    Column("completed_at", DateTimeTZ, nullable=True),
)

payout_schedules = Table(
    "payout_schedules",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column(
        "tournament_id",
        BigInteger,
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    ),
    Column("position", Integer, nullable=False),
    Column("percent", Numeric(5, 2), nullable=False),
    UniqueConstraint("tournament_id", "position"),
)

payouts = Table(
    "payouts",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("user_id", BigInteger, ForeignKey("users.id"), index=True, nullable=False),
    Column("tournament_id", BigInteger, ForeignKey("tournaments.id"), index=True, nullable=False),
    Column("amount", Money, nullable=False),
    Column("entitlement_amount", Money, nullable=True),
    Column("placement", Integer, nullable=True),
    Column(
        "status",
        Enum(
            "PENDING",
            "PROCESSING",
            "COMPLETED",
            "FAILED",
            "REJECTED",
            name="payout_status",
        ),
        nullable=False,
        server_default="PENDING",
        index=True,
    ),
    Column("anti_cheat_hold", Boolean, nullable=False, server_default="f"),
    Column("kyc_verified_at", DateTimeTZ, nullable=True),
    Column("provider_transfer_id", String, nullable=True),
    Column("failure_reason", Text, nullable=True),
    Column("processed_at", DateTimeTZ, nullable=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    UniqueConstraint("user_id", "tournament_id"),
)

prize_pool_ledger = Table(
    "prize_pool_ledger",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column(
        "tournament_id",
        BigInteger,
        ForeignKey("tournaments.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    ),
    Column(
        "type",
        Enum(
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
    Column("amount", Money, nullable=False),
    Column("balance", Money, nullable=False),
    Column("description", Text, nullable=False),
    Column("related_user_id", BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    Column("related_payout_id", BigInteger, ForeignKey("payouts.id"), nullable=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)

anticheat_cases = Table(
    "anticheat_cases",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("user_id", BigInteger, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False),
    Column(
        "tournament_id",
        BigInteger,
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    ),
    Column(
        "status",
        Enum(
            "SOFT_FLAG",
            "HARD_FLAG",
            "APPEALED",
            "RESOLVED",
            "DISMISSED",
            name="anticheat_case_status",
        ),
        nullable=False,
    ),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("action", String, nullable=False, index=True),
    Column("actor_id", BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    Column("entity_type", String, nullable=False),
    Column("entity_id", String, nullable=True, index=True),
    Column("before_state", JSON, nullable=True),
    Column("after_state", JSON, nullable=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)
