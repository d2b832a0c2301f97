from datetime import date
from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json

from portal.db.core import _get_connection

ACTIVITY_COLUMNS = (
    "id",
    "title",
    "date",
    "location",
    "category",
    "image",
    "comments",
    "description",
    "activity_type",
    "disability_access",
    "meeting_location",
    "time_start",
    "time_end",
    "meals_provided",
    "volunteer_slots",
    "participant_slots",
    "wheelchair_accessible",
    "visually_impaired_friendly",
    "hearing_impaired_friendly",
    "intellectual_disability_friendly",
    "autism_friendly",
    "suitable_disabilities",
    "created_by",
    "created_at",
    "updated_at",
)

# columns staff may write; id and timestamps are managed here
WRITABLE_COLUMNS = frozenset(ACTIVITY_COLUMNS) - {"id", "created_at", "updated_at"}

REQUIRED_ON_CREATE = ("title", "date", "location", "category")

DEFAULT_IMAGE = "https://images.unsplash.com/photo-1529390079861-591de354faf5?auto=format&fit=crop&q=80&w=800"

CREATE_DEFAULTS: dict[str, Any] = {
    "image": DEFAULT_IMAGE,
    "activity_type": "General",
    "disability_access": "Universal",
    "meals_provided": False,
    "volunteer_slots": 0,
    "participant_slots": 0,
}

_SELECT = sql.SQL("SELECT {} FROM activities").format(
    sql.SQL(", ").join(sql.Identifier(c) for c in ACTIVITY_COLUMNS)
)


def _adapt(fields: dict[str, Any]) -> dict[str, Any]:
    adapted = dict(fields)
    if adapted.get("suitable_disabilities") is not None:
        adapted["suitable_disabilities"] = Json(list(adapted["suitable_disabilities"]))
    return adapted


async def list_activities() -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(_SELECT + sql.SQL(" ORDER BY date, time_start NULLS FIRST, id"))
        return await cur.fetchall()


async def get_activity(activity_id: int | str) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(_SELECT + sql.SQL(" WHERE id = %s"), (int(activity_id),))
        return await cur.fetchone()


async def activities_created_by(user_id: str) -> list[dict[str, Any]]:
    """Activities whose ``created_by`` is ``user_id``, soonest first."""
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(_SELECT + sql.SQL(" WHERE created_by = %s ORDER BY date, time_start NULLS FIRST, id"), (user_id,))
        return await cur.fetchall()


async def create_activity(fields: dict[str, Any], created_by: str | None = None) -> dict[str, Any]:
    """Insert an activity. Raises ValueError when a required field is blank."""
    missing = [k for k in REQUIRED_ON_CREATE if not fields.get(k)]
    if missing:
        raise ValueError(f"missing required fields: {', '.join(missing)}")

    values = {**CREATE_DEFAULTS, **{k: v for k, v in fields.items() if k in WRITABLE_COLUMNS and v is not None}}
    if created_by is not None:
        values["created_by"] = created_by
    values = _adapt(values)
    columns = list(values)

    query = sql.SQL("INSERT INTO activities ({}) VALUES ({}) RETURNING {}").format(
        sql.SQL(", ").join(sql.Identifier(c) for c in columns),
        sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        sql.SQL(", ").join(sql.Identifier(c) for c in ACTIVITY_COLUMNS),
    )
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(query, [values[c] for c in columns])
        return await cur.fetchone()


async def update_activity(activity_id: int | str, fields: dict[str, Any]) -> dict[str, Any] | None:
    """Update the given columns. Returns the new row, or None if the id is unknown."""
    values = _adapt({k: v for k, v in fields.items() if k in WRITABLE_COLUMNS})
    if not values:
        return await get_activity(activity_id)

    assignments = [sql.SQL("{} = %s").format(sql.Identifier(c)) for c in values]
    assignments.append(sql.SQL("updated_at = NOW()"))
    query = sql.SQL("UPDATE activities SET {} WHERE id = %s RETURNING {}").format(
        sql.SQL(", ").join(assignments),
        sql.SQL(", ").join(sql.Identifier(c) for c in ACTIVITY_COLUMNS),
    )
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(query, [*values.values(), int(activity_id)])
        return await cur.fetchone()


async def delete_activity(activity_id: int | str) -> bool:
    async with _get_connection() as conn:
        cur = await conn.execute("DELETE FROM activities WHERE id = %s", (int(activity_id),))
        return cur.rowcount > 0


async def count_activities(since: date | None = None) -> int:
    """Number of activities, or of those on or after ``since``."""
    async with _get_connection() as conn:
        if since is None:
            cur = await conn.execute("SELECT COUNT(*) FROM activities")
        else:
            cur = await conn.execute("SELECT COUNT(*) FROM activities WHERE date >= %s", (since,))
        row = await cur.fetchone()
        return int(row[0]) if row else 0


async def next_activity(today: date) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(
            _SELECT + sql.SQL(" WHERE date >= %s ORDER BY date, time_start NULLS FIRST, id LIMIT 1"),
            (today,),
        )
        return await cur.fetchone()
