from typing import Any

from psycopg import sql
from psycopg.rows import dict_row

from portal.db.core import _get_connection

REGISTRATION_STATUSES = ("confirmed", "waitlist", "cancelled")

SLOT_COLUMNS = {"participant": "participant_slots", "volunteer": "volunteer_slots"}

_JOINED = """
    SELECT r.id, r.activity_id, r.user_id, r.user_type, r.status, r.role,
           r.created_at, r.updated_at,
           a.title AS activity_title, a.date AS activity_date, a.location AS activity_location
    FROM registrations r
    JOIN activities a ON a.id = r.activity_id
"""

_UPSERT = """INSERT INTO registrations (activity_id, user_id, user_type, status, role)
    VALUES (%s, %s, %s, %s, %s)
    ON CONFLICT (activity_id, user_id) DO UPDATE
    SET status = EXCLUDED.status,
        role = EXCLUDED.role,
        user_type = EXCLUDED.user_type,
        updated_at = NOW()
    RETURNING id, activity_id, user_id, user_type, status, role, created_at, updated_at"""


async def upsert_registration(
    activity_id: int | str,
    user_id: str,
    user_type: str,
    status: str,
    role: str | None = None,
) -> dict[str, Any]:
    """Write the single registration row for ``(activity_id, user_id)``."""
    if status not in REGISTRATION_STATUSES:
        raise ValueError(f"unknown registration status: {status}")
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(_UPSERT, (int(activity_id), user_id, user_type, status, role))
        return await cur.fetchone()


async def confirm_registration(
    activity_id: int | str,
    user_id: str,
    user_type: str,
    role: str | None = None,
    default_slots: int = 0,
) -> dict[str, Any] | None:
    """Confirm ``user_id`` only while the activity still has a free slot.

    The activity row stays locked until the insert commits, so concurrent
    confirmations are serialized against the same slot count. Returns None
    without writing when every slot is taken or the activity is gone.
    ``default_slots`` stands in for a NULL slot column.
    """
    column = SLOT_COLUMNS.get(user_type)
    if column is None:
        raise ValueError(f"unknown user type: {user_type}")
    async with _get_connection(autocommit=False) as conn:
        async with conn.transaction():
            cur = await conn.execute(
                sql.SQL("SELECT {} FROM activities WHERE id = %s FOR UPDATE").format(sql.Identifier(column)),
                (int(activity_id),),
            )
            activity = await cur.fetchone()
            if activity is None:
                return None
            slots = default_slots if activity[0] is None else int(activity[0])
            cur = await conn.execute(
                """SELECT COUNT(*) FROM registrations
                   WHERE activity_id = %s AND user_type = %s AND status = 'confirmed' AND user_id <> %s""",
                (int(activity_id), user_type, user_id),
            )
            taken = await cur.fetchone()
            if int(taken[0]) >= slots:
                return None
            cur = conn.cursor(row_factory=dict_row)
            await cur.execute(_UPSERT, (int(activity_id), user_id, user_type, "confirmed", role))
            return await cur.fetchone()


async def count_confirmed(activity_id: int | str, user_type: str) -> int:
    async with _get_connection() as conn:
        cur = await conn.execute(
            "SELECT COUNT(*) FROM registrations WHERE activity_id = %s AND user_type = %s AND status = 'confirmed'",
            (int(activity_id), user_type),
        )
        row = await cur.fetchone()
        return int(row[0]) if row else 0


async def confirmed_counts(user_type: str | None = None) -> dict[str, int]:
    """Confirmed registrations per activity id, optionally for one user type."""
    query = "SELECT activity_id, COUNT(*) FROM registrations WHERE status = 'confirmed'"
    params: tuple[Any, ...] = ()
    if user_type is not None:
        query += " AND user_type = %s"
        params = (user_type,)
    query += " GROUP BY activity_id"
    async with _get_connection() as conn:
        cur = await conn.execute(query, params)
        return {str(row[0]): int(row[1]) async for row in cur}


async def confirmed_counts_by_type() -> dict[str, dict[str, int]]:
    """``{activity_id: {"participant": n, "volunteer": m}}`` over confirmed rows."""
    async with _get_connection() as conn:
        cur = await conn.execute(
            """SELECT activity_id, user_type, COUNT(*) FROM registrations
               WHERE status = 'confirmed' GROUP BY activity_id, user_type"""
        )
        counts: dict[str, dict[str, int]] = {}
        async for activity_id, user_type, n in cur:
            counts.setdefault(str(activity_id), {"participant": 0, "volunteer": 0})[user_type] = int(n)
        return counts


async def registrations_for_user(user_id: str, user_type: str | None = None) -> list[dict[str, Any]]:
    query = _JOINED + " WHERE r.user_id = %s"
    params: list[Any] = [user_id]
    if user_type is not None:
        query += " AND r.user_type = %s"
        params.append(user_type)
    query += " ORDER BY a.date, r.id"
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(query, params)
        return await cur.fetchall()


async def registrations_for_activity(activity_id: int | str) -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(_JOINED + " WHERE r.activity_id = %s ORDER BY r.created_at", (int(activity_id),))
        return await cur.fetchall()


async def list_registrations(
    status: str | None = None,
    user_type: str | None = None,
    limit: int = 200,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """Registrations joined with their activity, newest first."""
    clauses = []
    params: list[Any] = []
    if status is not None:
        clauses.append("r.status = %s")
        params.append(status)
    if user_type is not None:
        clauses.append("r.user_type = %s")
        params.append(user_type)
    query = _JOINED
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY r.created_at DESC, r.id DESC LIMIT %s OFFSET %s"
    params.extend([limit, offset])
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(query, params)
        return await cur.fetchall()


async def update_registration_status(registration_ids: list[int], status: str) -> int:
    """Set ``status`` on every listed registration. Returns rows changed."""
    if status not in REGISTRATION_STATUSES:
        raise ValueError(f"unknown registration status: {status}")
    if not registration_ids:
        return 0
    async with _get_connection() as conn:
        cur = await conn.execute(
            "UPDATE registrations SET status = %s, updated_at = NOW() WHERE id = ANY(%s)",
            (status, list(registration_ids)),
        )
        return cur.rowcount


async def count_registrations_by_status() -> dict[str, int]:
    async with _get_connection() as conn:
        cur = await conn.execute("SELECT status, COUNT(*) FROM registrations GROUP BY status")
        counts = dict.fromkeys(REGISTRATION_STATUSES, 0)
        async for status, n in cur:
            counts[status] = int(n)
        return counts
