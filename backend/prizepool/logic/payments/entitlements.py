from collections.abc import Sequence
from decimal import Decimal

from pydantic import BaseModel

from prizepool.logic.ranking.calculation import get_tournament_standings
from prizepool.models.db.payout import PayoutScheduleSlot
from prizepool.sql.payout_schedules import (
    sql_ensure_default_payout_schedule,
    sql_get_payout_schedule,
)
from prizepool.sql.tournaments import sql_get_tournament
from prizepool.utils.id_types import TournamentId, UserId
from prizepool.utils.money import ZERO, percent_of, quantize_money


class PayoutEntitlement(BaseModel):
    placement: int
    percent: Decimal
    amount: Decimal


def compute_entitlement(
    placement: int | None,
    schedule: Sequence[PayoutScheduleSlot],
    prize_pool: Decimal,
) -> PayoutEntitlement | None:
    """
    Resolve a placement to a prize amount. Players sharing a placement each resolve to the
    same slot. Returns ``None`` when the placement has no slot or the amount is not positive.
    """
    if placement is None:
        return None

    slot = next((slot for slot in schedule if slot.position == placement), None)
    if slot is None:
        return None

    amount = percent_of(quantize_money(prize_pool), slot.percent)
    if amount <= ZERO:
        return None

    return PayoutEntitlement(placement=placement, percent=slot.percent, amount=amount)


async def get_payout_entitlement(
    tournament_id: TournamentId, user_id: UserId
) -> PayoutEntitlement | None:
    tournament = await sql_get_tournament(tournament_id)
    if tournament is None:
        return None

    standings = await get_tournament_standings(tournament_id)
    if len(standings) < 1:
        return None

    await sql_ensure_default_payout_schedule(tournament_id)
    schedule = await sql_get_payout_schedule(tournament_id)

    placement = next(
        (standing.placement for standing in standings if standing.user_id == user_id), None
    )
    return compute_entitlement(placement, schedule, tournament.prize_pool)
