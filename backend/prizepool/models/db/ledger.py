from decimal import Decimal
from enum import auto

from heliclockter import datetime_utc
from pydantic import BaseModel

from prizepool.models.db.shared import BaseModelORM
from prizepool.utils.id_types import LedgerEntryId, PayoutId, TournamentId, UserId
from prizepool.utils.types import EnumAutoStr


class LedgerEntryType(EnumAutoStr):
    ENTRY_FEE = auto()
    PLATFORM_FEE = auto()
    STRIPE_FEE = auto()
    PAYOUT = auto()
    REFUND = auto()
    SEED = auto()


class LedgerEntryInput(BaseModel):
    type: LedgerEntryType
    amount: Decimal
    description: str
    related_user_id: UserId | None = None
    related_payout_id: PayoutId | None = None
    affects_balance: bool = True


class PrizePoolLedgerEntry(BaseModelORM):
    id: LedgerEntryId
    tournament_id: TournamentId
    type: LedgerEntryType
    amount: Decimal
    balance: Decimal
    description: str
    related_user_id: UserId | None = None
    related_payout_id: PayoutId | None = None
    created: datetime_utc
