from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class SeasonMode(Enum):
    FREE = "free"
    PAID = "paid"


class PrizeMode(Enum):
    CASH = "cash"
    GIFT_CARD = "gift_card"


class SeasonConfig(BaseModel):
    mode: SeasonMode
    prize_mode: PrizeMode
    free_prize_pool: Decimal = Field(ge=0, le=100_000, decimal_places=2)

    @property
    def is_free(self) -> bool:
        return self.mode is SeasonMode.FREE

    @property
    def allows_cash_payouts(self) -> bool:
        return self.prize_mode is PrizeMode.CASH
