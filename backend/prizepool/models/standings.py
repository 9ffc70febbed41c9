from pydantic import BaseModel

from prizepool.utils.id_types import UserId


class Standing(BaseModel):
    user_id: UserId
    wins: int = 0
    losses: int = 0
    draws: int = 0
    matches_played: int = 0
    points: float = 0.0
    buchholz: float = 0.0
    sonneborn: float = 0.0
    had_bye: bool = False


class RankedStanding(Standing):
    placement: int
