from fastapi import APIRouter, Depends

from prizepool.config import config
from prizepool.logic.scheduling.advance import maybe_advance_swiss_round
from prizepool.logic.scheduling.results import report_match_result
from prizepool.models.db.match import MatchResultBody
from prizepool.models.db.tournament import Tournament
from prizepool.models.db.user import UserPublic
from prizepool.routes.auth import admin_authenticated
from prizepool.routes.models import (
    AdvanceResponse,
    MatchesResponse,
    MatchResultResponse,
    MatchResultView,
)
from prizepool.routes.util import tournament_dependency
from prizepool.sql.matches import sql_get_matches
from prizepool.utils.id_types import MatchId, TournamentId

router = APIRouter(prefix=config.api_prefix)


@router.get("/tournaments/{tournament_id}/matches", response_model=MatchesResponse)
async def get_matches(
    tournament: Tournament = Depends(tournament_dependency),
) -> MatchesResponse:
    return MatchesResponse(data=await sql_get_matches(tournament.id))


@router.put(
    "/tournaments/{tournament_id}/matches/{match_id}", response_model=MatchResultResponse
)
async def put_match_result(
    tournament_id: TournamentId,
    match_id: MatchId,
    body: MatchResultBody,
    user: UserPublic = Depends(admin_authenticated),
) -> MatchResultResponse:
    match, outcome = await report_match_result(tournament_id, match_id, body.result, user.id)
    return MatchResultResponse(data=MatchResultView(match=match, advance=outcome.value))


@router.post("/tournaments/{tournament_id}/advance", response_model=AdvanceResponse)
async def post_advance_round(
    tournament_id: TournamentId, user: UserPublic = Depends(admin_authenticated)
) -> AdvanceResponse:
    outcome = await maybe_advance_swiss_round(tournament_id, user.id)
    return AdvanceResponse(data=outcome.value)
