from collections.abc import Sequence

from heliclockter import datetime_utc

from prizepool.database import database
from prizepool.models.db.entry import Entry, EntryInsertable, EntryStatus
from prizepool.utils.id_types import EntryId, TournamentId, UserId


async def sql_get_entry(entry_id: EntryId, *, for_update: bool = False) -> Entry | None:
    query = f"""
        SELECT *
        FROM entries
        WHERE id = :entry_id
        {"FOR UPDATE" if for_update else ""}
        """
    result = await database.fetch_one(query=query, values={"entry_id": entry_id})
    return Entry.model_validate(dict(result._mapping)) if result is not None else None


async def sql_get_entry_for_user(tournament_id: TournamentId, user_id: UserId) -> Entry | None:
    query = """
        SELECT *
        FROM entries
        WHERE tournament_id = :tournament_id
          AND user_id = :user_id
        """
    result = await database.fetch_one(
        query=query, values={"tournament_id": tournament_id, "user_id": user_id}
    )
    return Entry.model_validate(dict(result._mapping)) if result is not None else None


async def sql_get_entries(
    tournament_id: TournamentId, statuses: Sequence[EntryStatus] | None = None
) -> list[Entry]:
    """Entries in registration order."""
    query = """
        SELECT *
        FROM entries
        WHERE tournament_id = :tournament_id
        """
    values: dict[str, object] = {"tournament_id": tournament_id}
    if statuses is not None:
        query += " AND status::text = ANY(:statuses)"
        values["statuses"] = [status.value for status in statuses]
    query += " ORDER BY created ASC, id ASC"

    rows = await database.fetch_all(query=query, values=values)
    return [Entry.model_validate(dict(row._mapping)) for row in rows]


async def sql_get_confirmed_user_ids(tournament_id: TournamentId) -> list[UserId]:
    entries = await sql_get_entries(tournament_id, [EntryStatus.CONFIRMED])
    return [entry.user_id for entry in entries]


async def sql_create_entry(entry: EntryInsertable) -> Entry | None:
    """Returns ``None`` when the user already has an entry for this tournament."""
    query = """
        INSERT INTO entries (user_id, tournament_id, status, payment_reference, paid_at, created)
        VALUES (:user_id, :tournament_id, :status, :payment_reference, :paid_at, :created)
        ON CONFLICT (user_id, tournament_id) DO NOTHING
        RETURNING *
        """
    values = {**entry.model_dump(), "status": entry.status.value}
    result = await database.fetch_one(query=query, values=values)
    return Entry.model_validate(dict(result._mapping)) if result is not None else None


async def sql_confirm_entry(
    entry_id: EntryId, payment_reference: str | None, paid_at: datetime_utc
) -> Entry | None:
    query = """
        UPDATE entries
        SET
            status = 'CONFIRMED',
            payment_reference = COALESCE(:payment_reference, payment_reference),
            paid_at = :paid_at
        WHERE id = :entry_id
          AND status = 'PENDING'
        RETURNING *
        """
    result = await database.fetch_one(
        query=query,
        values={"entry_id": entry_id, "payment_reference": payment_reference, "paid_at": paid_at},
    )
    return Entry.model_validate(dict(result._mapping)) if result is not None else None


async def sql_cancel_entry(entry_id: EntryId) -> Entry | None:
    query = """
        UPDATE entries
        SET status = 'CANCELLED'
        WHERE id = :entry_id
          AND status <> 'CANCELLED'
        RETURNING *
        """
    result = await database.fetch_one(query=query, values={"entry_id": entry_id})
    return Entry.model_validate(dict(result._mapping)) if result is not None else None


async def sql_cancel_entries(entry_ids: Sequence[EntryId]) -> None:
    if len(entry_ids) < 1:
        return

    query = """
        UPDATE entries
        SET status = 'CANCELLED'
        WHERE id = ANY(:entry_ids)
        """
    await database.execute(query=query, values={"entry_ids": [int(x) for x in entry_ids]})
