from decimal import Decimal
from enum import auto

from heliclockter import datetime_utc
from pydantic import BaseModel, Field, model_validator

from prizepool.models.db.shared import BaseModelORM
from prizepool.utils.id_types import TournamentId, UserId
from prizepool.utils.types import EnumAutoStr


class TournamentStatus(EnumAutoStr):
    REGISTRATION = auto()
    IN_PROGRESS = auto()
    COMPLETED = auto()
    CANCELLED = auto()


class TournamentInsertable(BaseModelORM):
    name: str
    status: TournamentStatus = TournamentStatus.REGISTRATION
    entry_fee: Decimal
    prize_pool: Decimal = Decimal("0.00")
    min_players: int
    max_players: int
    current_players: int = 0
    start_date: datetime_utc
    lock_at: datetime_utc
    created_by: UserId | None = None
    created: datetime_utc


class Tournament(TournamentInsertable):
    id: TournamentId

    def registration_is_open(self, now: datetime_utc) -> bool:
        return self.status is TournamentStatus.REGISTRATION and now < self.lock_at


class TournamentBody(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    entry_fee: Decimal = Field(ge=0, decimal_places=2)
    min_players: int = Field(default=8, ge=2)
    max_players: int = Field(ge=2)
    start_date: datetime_utc

    @model_validator(mode="after")
    def check_player_bounds(self) -> "TournamentBody":
        if self.max_players < self.min_players:
            raise ValueError("max_players must be greater than or equal to min_players")
        return self
