from enum import auto

from heliclockter import datetime_utc
from pydantic import BaseModel

from prizepool.models.db.shared import BaseModelORM
from prizepool.utils.id_types import MatchId, TournamentId, UserId
from prizepool.utils.types import EnumAutoStr


class MatchResult(EnumAutoStr):
    PLAYER1 = auto()
    PLAYER2 = auto()
    DRAW = auto()


class MatchStatus(EnumAutoStr):
    SCHEDULED = auto()
    COMPLETED = auto()


class MatchInsertable(BaseModelORM):
    tournament_id: TournamentId
    round: int
    player1_id: UserId
    player2_id: UserId | None = None
    result: MatchResult | None = None
    status: MatchStatus = MatchStatus.SCHEDULED
    scheduled_at: datetime_utc
    completed_at: datetime_utc | None = None

    @property
    def is_bye(self) -> bool:
        return self.player2_id is None


class Match(MatchInsertable):
    id: MatchId


class MatchResultBody(BaseModel):
    result: MatchResult


class SwissPairing(BaseModel):
    round: int
    player1_id: UserId
    player2_id: UserId | None
    status: MatchStatus = MatchStatus.SCHEDULED
    result: MatchResult | None = None
