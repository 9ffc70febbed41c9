from decimal import Decimal

from heliclockter import datetime_utc

from prizepool.database import database
from prizepool.models.db.payout import Payout, PayoutInsertable, PayoutStatus
from prizepool.utils.id_types import PayoutId, TournamentId, UserId


async def sql_get_payout(payout_id: PayoutId) -> Payout | None:
    query = """
        SELECT *
        FROM payouts
        WHERE id = :payout_id
        """
    result = await database.fetch_one(query=query, values={"payout_id": payout_id})
    return Payout.model_validate(dict(result._mapping)) if result is not None else None


async def sql_get_payout_for_user(user_id: UserId, tournament_id: TournamentId) -> Payout | None:
    query = """
        SELECT *
        FROM payouts
        WHERE user_id = :user_id
          AND tournament_id = :tournament_id
        """
    result = await database.fetch_one(
        query=query, values={"user_id": user_id, "tournament_id": tournament_id}
    )
    return Payout.model_validate(dict(result._mapping)) if result is not None else None


async def sql_get_payouts_for_user(user_id: UserId) -> list[Payout]:
    query = """
        SELECT *
        FROM payouts
        WHERE user_id = :user_id
        ORDER BY created DESC, id DESC
        """
    rows = await database.fetch_all(query=query, values={"user_id": user_id})
    return [Payout.model_validate(dict(row._mapping)) for row in rows]


async def sql_get_payouts(status: PayoutStatus | None = None) -> list[Payout]:
    query = """
        SELECT *
        FROM payouts
        WHERE TRUE
        """
    values: dict[str, object] = {}
    if status is not None:
        query += " AND status = :status"
        values["status"] = status.value
    query += " ORDER BY created ASC, id ASC"

    rows = await database.fetch_all(query=query, values=values)
    return [Payout.model_validate(dict(row._mapping)) for row in rows]


async def sql_insert_payout(payout: PayoutInsertable) -> Payout | None:
    """Returns ``None`` if a payout for this user and tournament already exists."""
    query = """
        INSERT INTO payouts (
            user_id,
            tournament_id,
            amount,
            entitlement_amount,
            placement,
            status,
            anti_cheat_hold,
            kyc_verified_at,
            created
        )
        VALUES (
            :user_id,
            :tournament_id,
            :amount,
            :entitlement_amount,
            :placement,
            :status,
            :anti_cheat_hold,
            :kyc_verified_at,
            :created
        )
        ON CONFLICT (user_id, tournament_id) DO NOTHING
        RETURNING *
        """
    values = {**payout.model_dump(), "status": payout.status.value}
    result = await database.fetch_one(query=query, values=values)
    return Payout.model_validate(dict(result._mapping)) if result is not None else None


async def sql_backfill_payout_entitlement(
    payout_id: PayoutId, entitlement_amount: Decimal, placement: int
) -> Payout | None:
    """Set entitlement fields only if they were never set; they are immutable afterwards."""
    query = """
        UPDATE payouts
        SET
            entitlement_amount = :entitlement_amount,
            placement = :placement
        WHERE id = :payout_id
          AND status = 'PENDING'
          AND entitlement_amount IS NULL
          AND placement IS NULL
        RETURNING *
        """
    result = await database.fetch_one(
        query=query,
        values={
            "payout_id": payout_id,
            "entitlement_amount": entitlement_amount,
            "placement": placement,
        },
    )
    return Payout.model_validate(dict(result._mapping)) if result is not None else None


async def sql_transition_payout(
    payout_id: PayoutId,
    from_status: PayoutStatus,
    to_status: PayoutStatus,
    *,
    provider_transfer_id: str | None = None,
    failure_reason: str | None = None,
    processed_at: datetime_utc | None = None,
) -> Payout | None:
    """
    Conditional status update. Exactly one concurrent caller observes the row in
    ``from_status``; every other caller gets ``None`` and must not act on the payout.
    """
    query = """
        UPDATE payouts
        SET
            status = :to_status,
            provider_transfer_id = COALESCE(:provider_transfer_id, provider_transfer_id),
            failure_reason = COALESCE(:failure_reason, failure_reason),
            processed_at = COALESCE(:processed_at, processed_at)
        WHERE id = :payout_id
          AND status = :from_status
        RETURNING *
        """
    result = await database.fetch_one(
        query=query,
        values={
            "payout_id": payout_id,
            "from_status": from_status.value,
            "to_status": to_status.value,
            "provider_transfer_id": provider_transfer_id,
            "failure_reason": failure_reason,
            "processed_at": processed_at,
        },
    )
    return Payout.model_validate(dict(result._mapping)) if result is not None else None
