from enum import auto

from heliclockter import datetime_utc
from pydantic import BaseModel

from prizepool.models.db.shared import BaseModelORM
from prizepool.utils.id_types import EntryId, TournamentId, UserId
from prizepool.utils.types import EnumAutoStr

FREE_PAYMENT_REFERENCE_PREFIXES = ("free-", "dev-")


class EntryStatus(EnumAutoStr):
    PENDING = auto()
    CONFIRMED = auto()
    CANCELLED = auto()


class EntryInsertable(BaseModelORM):
    user_id: UserId
    tournament_id: TournamentId
    status: EntryStatus = EntryStatus.PENDING
    payment_reference: str | None = None
    paid_at: datetime_utc | None = None
    created: datetime_utc


class Entry(EntryInsertable):
    id: EntryId

    @property
    def has_refundable_payment(self) -> bool:
        return self.payment_reference is not None and not self.payment_reference.startswith(
            FREE_PAYMENT_REFERENCE_PREFIXES
        )


class RefundBody(BaseModel):
    tournament_id: TournamentId
