from enum import auto

from heliclockter import datetime_utc

from prizepool.models.db.shared import BaseModelORM
from prizepool.utils.id_types import AntiCheatCaseId, TournamentId, UserId
from prizepool.utils.types import EnumAutoStr


class AntiCheatCaseStatus(EnumAutoStr):
    SOFT_FLAG = auto()
    HARD_FLAG = auto()
    APPEALED = auto()
    RESOLVED = auto()
    DISMISSED = auto()


HOLDING_CASE_STATUSES = frozenset(
    {AntiCheatCaseStatus.SOFT_FLAG, AntiCheatCaseStatus.HARD_FLAG, AntiCheatCaseStatus.APPEALED}
)


class AntiCheatCase(BaseModelORM):
    id: AntiCheatCaseId
    user_id: UserId
    tournament_id: TournamentId
    status: AntiCheatCaseStatus
    created: datetime_utc

    @property
    def is_holding(self) -> bool:
        return self.status in HOLDING_CASE_STATUSES
