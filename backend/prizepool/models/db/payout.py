from decimal import Decimal
from enum import auto

from heliclockter import datetime_utc
from pydantic import BaseModel, Field, field_validator

from prizepool.models.db.shared import BaseModelORM
from prizepool.utils.id_types import PayoutId, PayoutScheduleId, TournamentId, UserId
from prizepool.utils.types import EnumAutoStr


class PayoutStatus(EnumAutoStr):
    PENDING = auto()
    PROCESSING = auto()
    COMPLETED = auto()
    FAILED = auto()
    REJECTED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (PayoutStatus.COMPLETED, PayoutStatus.FAILED, PayoutStatus.REJECTED)


class PayoutInsertable(BaseModelORM):
    user_id: UserId
    tournament_id: TournamentId
    amount: Decimal
    entitlement_amount: Decimal | None = None
    placement: int | None = None
    status: PayoutStatus = PayoutStatus.PENDING
    anti_cheat_hold: bool = False
    kyc_verified_at: datetime_utc | None = None
    created: datetime_utc


class Payout(PayoutInsertable):
    id: PayoutId
    provider_transfer_id: str | None = None
    failure_reason: str | None = None
    processed_at: datetime_utc | None = None


class PayoutRequestBody(BaseModel):
    tournament_id: TournamentId


class PayoutRejectBody(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class PayoutScheduleSlot(BaseModel):
    position: int = Field(ge=1)
    percent: Decimal = Field(gt=0, le=100, decimal_places=2)


class PayoutSchedule(PayoutScheduleSlot, BaseModelORM):
    id: PayoutScheduleId
    tournament_id: TournamentId


class PayoutScheduleBody(BaseModel):
    slots: list[PayoutScheduleSlot] = Field(min_length=1)

    @field_validator("slots")
    @classmethod
    def validate_slots(cls, slots: list[PayoutScheduleSlot]) -> list[PayoutScheduleSlot]:
        positions = [slot.position for slot in slots]
        if len(set(positions)) != len(positions):
            raise ValueError("positions must be unique")
        if sum(slot.percent for slot in slots) > 100:
            raise ValueError("percentages must not add up to more than 100")
        return sorted(slots, key=lambda slot: slot.position)
