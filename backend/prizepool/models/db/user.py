from heliclockter import datetime_utc

from prizepool.models.db.account import KycStatus, UserRole
from prizepool.models.db.shared import BaseModelORM
from prizepool.utils.id_types import UserId


class UserBase(BaseModelORM):
    email: str
    name: str
    role: UserRole = UserRole.USER
    created: datetime_utc


class UserPublic(UserBase):
    id: UserId

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


class UserProfile(BaseModelORM):
    user_id: UserId
    kyc_status: KycStatus = KycStatus.PENDING
    kyc_verified_at: datetime_utc | None = None
    payment_destination: str | None = None
