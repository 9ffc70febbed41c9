from heliclockter import datetime_utc

from prizepool.models.db.shared import BaseModelORM
from prizepool.utils.id_types import AuditLogId, UserId
from prizepool.utils.types import JsonDict


class AuditLogInsertable(BaseModelORM):
    action: str
    actor_id: UserId | None = None
    entity_type: str
    entity_id: str | None = None
    before_state: JsonDict | None = None
    after_state: JsonDict | None = None
    created: datetime_utc


class AuditLog(AuditLogInsertable):
    id: AuditLogId
