import json

from heliclockter import datetime_utc
from pydantic import BaseModel

from prizepool.database import database
from prizepool.models.db.audit import AuditLog, AuditLogInsertable
from prizepool.utils.id_types import UserId
from prizepool.utils.types import JsonDict, assert_some


def snapshot(model: BaseModel | None) -> JsonDict | None:
    return model.model_dump(mode="json") if model is not None else None


async def sql_insert_audit_log(audit_log: AuditLogInsertable) -> AuditLog:
    query = """
        INSERT INTO audit_logs (
            action, actor_id, entity_type, entity_id, before_state, after_state, created
        )
        VALUES (
            :action,
            :actor_id,
            :entity_type,
            :entity_id,
            CAST(:before_state AS JSON),
            CAST(:after_state AS JSON),
            :created
        )
        RETURNING *
        """
    row = await database.fetch_one(
        query=query,
        values={
            **audit_log.model_dump(exclude={"before_state", "after_state"}),
            "before_state": (
                json.dumps(audit_log.before_state) if audit_log.before_state is not None else None
            ),
            "after_state": (
                json.dumps(audit_log.after_state) if audit_log.after_state is not None else None
            ),
        },
    )
    mapping = dict(assert_some(row)._mapping)
    for key in ("before_state", "after_state"):
        if isinstance(mapping[key], str):
            mapping[key] = json.loads(mapping[key])
    return AuditLog.model_validate(mapping)


async def record_audit_event(
    action: str,
    actor_id: UserId | None,
    entity_type: str,
    entity_id: int | str | None,
    before: BaseModel | None,
    after: BaseModel | None,
) -> AuditLog:
    return await sql_insert_audit_log(
        AuditLogInsertable(
            action=action,
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            before_state=snapshot(before),
            after_state=snapshot(after),
            created=datetime_utc.now(),
        )
    )
