from fastapi import APIRouter, Depends

from prizepool.config import config
from prizepool.database import database
from prizepool.logic.ranking.calculation import get_tournament_standings
from prizepool.logic.scheduling.lock import enforce_tournament_lock
from prizepool.logic.tournaments import create_tournament, enter_tournament
from prizepool.models.db.payout import PayoutScheduleBody
from prizepool.models.db.tournament import Tournament, TournamentBody, TournamentStatus
from prizepool.models.db.user import UserPublic
from prizepool.routes.auth import admin_authenticated, user_authenticated
from prizepool.routes.models import (
    EntryResponse,
    LedgerResponse,
    PayoutScheduleResponse,
    StandingsResponse,
    TournamentResponse,
)
from prizepool.routes.util import tournament_dependency
from prizepool.sql.audit import record_audit_event
from prizepool.sql.ledger import sql_get_ledger
from prizepool.sql.payout_schedules import (
    sql_ensure_default_payout_schedule,
    sql_get_payout_schedule,
    sql_replace_payout_schedule,
)
from prizepool.sql.tournaments import sql_get_tournament
from prizepool.utils.errors import NotFound, PreconditionFailed
from prizepool.utils.id_types import TournamentId

router = APIRouter(prefix=config.api_prefix)


@router.post("/tournaments", response_model=TournamentResponse)
async def create_new_tournament(
    body: TournamentBody, user: UserPublic = Depends(admin_authenticated)
) -> TournamentResponse:
    return TournamentResponse(data=await create_tournament(body, user.id))


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
async def get_tournament(
    tournament: Tournament = Depends(tournament_dependency),
) -> TournamentResponse:
    return TournamentResponse(data=tournament)


@router.post("/tournaments/{tournament_id}/enter", response_model=EntryResponse)
async def post_enter_tournament(
    tournament_id: TournamentId, user: UserPublic = Depends(user_authenticated)
) -> EntryResponse:
    return EntryResponse(data=await enter_tournament(tournament_id, user.id))


@router.post("/tournaments/{tournament_id}/lock", response_model=TournamentResponse)
async def post_lock_tournament(
    tournament_id: TournamentId, user: UserPublic = Depends(admin_authenticated)
) -> TournamentResponse:
    await enforce_tournament_lock(tournament_id, user.id)
    tournament = await sql_get_tournament(tournament_id)
    if tournament is None:
        raise NotFound(f"Tournament {tournament_id} does not exist")
    return TournamentResponse(data=tournament)


@router.get("/tournaments/{tournament_id}/standings", response_model=StandingsResponse)
async def get_standings(
    tournament: Tournament = Depends(tournament_dependency),
) -> StandingsResponse:
    return StandingsResponse(data=await get_tournament_standings(tournament.id))


@router.get(
    "/tournaments/{tournament_id}/payout_schedule", response_model=PayoutScheduleResponse
)
async def get_payout_schedule(
    tournament: Tournament = Depends(tournament_dependency),
    _: UserPublic = Depends(admin_authenticated),
) -> PayoutScheduleResponse:
    await sql_ensure_default_payout_schedule(tournament.id)
    return PayoutScheduleResponse(data=await sql_get_payout_schedule(tournament.id))


@router.put(
    "/tournaments/{tournament_id}/payout_schedule", response_model=PayoutScheduleResponse
)
async def put_payout_schedule(
    body: PayoutScheduleBody,
    tournament: Tournament = Depends(tournament_dependency),
    user: UserPublic = Depends(admin_authenticated),
) -> PayoutScheduleResponse:
    if tournament.status is TournamentStatus.COMPLETED:
        raise PreconditionFailed(
            "Payout schedule of a completed tournament is final", reason="TOURNAMENT_COMPLETED"
        )

    async with database.transaction():
        await sql_replace_payout_schedule(tournament.id, body.slots)
        await record_audit_event(
            "PAYOUT_SCHEDULE_REPLACED", user.id, "tournament", tournament.id, None, body
        )

    return PayoutScheduleResponse(data=await sql_get_payout_schedule(tournament.id))


@router.get("/tournaments/{tournament_id}/ledger", response_model=LedgerResponse)
async def get_ledger(
    tournament: Tournament = Depends(tournament_dependency),
    _: UserPublic = Depends(admin_authenticated),
) -> LedgerResponse:
    return LedgerResponse(data=await sql_get_ledger(tournament.id))
