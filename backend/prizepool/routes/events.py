from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from prizepool.config import config
from prizepool.logic.events import subscribe_to_tournament
from prizepool.sql.tournaments import sql_get_tournament
from prizepool.utils.id_types import TournamentId
from prizepool.utils.logging import logger

router = APIRouter(prefix=config.api_prefix)


@router.websocket("/tournaments/{tournament_id}/events")
async def tournament_events(websocket: WebSocket, tournament_id: TournamentId) -> None:
    """Push standings, round, ledger and payout updates of one tournament to the client."""
    if await sql_get_tournament(tournament_id) is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    subscription = subscribe_to_tournament(tournament_id)
    try:
        async for event in subscription:
            await websocket.send_json(event.model_dump(mode="json"))
    except WebSocketDisconnect:
        logger.debug(f"Event stream for tournament {tournament_id} closed by client")
    finally:
        subscription.close()
