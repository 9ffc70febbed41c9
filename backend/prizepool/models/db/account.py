from enum import auto

from prizepool.utils.types import EnumAutoStr


class UserRole(EnumAutoStr):
    USER = auto()
    ADMIN = auto()


class KycStatus(EnumAutoStr):
    PENDING = auto()
    VERIFIED = auto()
    REJECTED = auto()
