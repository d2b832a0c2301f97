from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json

from portal.db.core import _get_connection

PROFILE_COLUMNS = (
    "id",
    "email",
    "full_name",
    "role",
    "phone",
    "age",
    "disability",
    "caregiver_info",
    "photo_url",
    "created_at",
    "updated_at",
)
PROFILE_WRITABLE = frozenset({"email", "full_name", "phone", "age", "disability", "caregiver_info", "photo_url"})

VOLUNTEER_COLUMNS = ("id", "full_name", "gender", "bio", "experience", "languages")
VOLUNTEER_WRITABLE = frozenset(VOLUNTEER_COLUMNS) - {"id"}

_PROFILE_SELECT = sql.SQL("SELECT {} FROM profiles").format(
    sql.SQL(", ").join(sql.Identifier(c) for c in PROFILE_COLUMNS)
)


def _columns(names) -> sql.Composed:
    return sql.SQL(", ").join(sql.Identifier(c) for c in names)


async def get_profile(user_id: str) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(_PROFILE_SELECT + sql.SQL(" WHERE id = %s"), (user_id,))
        return await cur.fetchone()


async def ensure_profile(user_id: str, email: str, role: str) -> dict[str, Any]:
    """Return the profile row, creating an empty one on first login."""
    async with _get_connection() as conn:
        await conn.execute(
            "INSERT INTO profiles (id, email, role) VALUES (%s, %s, %s) ON CONFLICT (id) DO NOTHING",
            (user_id, email, role),
        )
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(_PROFILE_SELECT + sql.SQL(" WHERE id = %s"), (user_id,))
        return await cur.fetchone()


async def update_profile(user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
    values = {k: v for k, v in fields.items() if k in PROFILE_WRITABLE}
    if "caregiver_info" in values and values["caregiver_info"] is not None:
        values["caregiver_info"] = Json(values["caregiver_info"])
    if not values:
        return await get_profile(user_id)

    assignments = [sql.SQL("{} = %s").format(sql.Identifier(c)) for c in values]
    assignments.append(sql.SQL("updated_at = NOW()"))
    query = sql.SQL("UPDATE profiles SET {} WHERE id = %s RETURNING {}").format(
        sql.SQL(", ").join(assignments), _columns(PROFILE_COLUMNS)
    )
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(query, [*values.values(), user_id])
        return await cur.fetchone()


async def list_profiles(role: str | None = None) -> list[dict[str, Any]]:
    query = _PROFILE_SELECT
    params: tuple[Any, ...] = ()
    if role is not None:
        query = query + sql.SQL(" WHERE role = %s")
        params = (role,)
    async with _get_connection() as conn:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(query + sql.SQL(" ORDER BY created_at DESC"), params)
        return await cur.fetchall()


async def count_profiles_by_role() -> dict[str, int]:
    async with _get_connection() as conn:
        cur = await conn.execute("SELECT role, COUNT(*) FROM profiles GROUP BY role")
        counts = {"participant": 0, "volunteer": 0, "staff": 0}
        async for role, n in cur:
            counts[role] = int(n)
        return counts


async def get_volunteer_profile(user_id: str) -> dict[str, Any]:
    """Return the volunteer profile row, inserting a blank one if missing."""
    async with _get_connection() as conn:
        await conn.execute(
            """INSERT INTO volunteer_profiles (id, full_name, gender, bio, experience, languages)
               VALUES (%s, '', 'Prefer not to say', '', '', '')
               ON CONFLICT (id) DO NOTHING""",
            (user_id,),
        )
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(
            sql.SQL("SELECT {} FROM volunteer_profiles WHERE id = %s").format(_columns(VOLUNTEER_COLUMNS)),
            (user_id,),
        )
        return await cur.fetchone()


async def upsert_volunteer_profile(user_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    values = {k: v for k, v in fields.items() if k in VOLUNTEER_WRITABLE}
    columns = ["id", *values]
    if values:
        conflict = sql.SQL("DO UPDATE SET {}").format(
            sql.SQL(", ").join(sql.SQL("{0} = EXCLUDED.{0}").format(sql.Identifier(c)) for c in values)
        )
    else:
        conflict = sql.SQL("DO NOTHING")
    query = sql.SQL("INSERT INTO volunteer_profiles ({}) VALUES ({}) ON CONFLICT (id) {}").format(
        _columns(columns),
        sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        conflict,
    )
    async with _get_connection() as conn:
        await conn.execute(query, [user_id, *values.values()])
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(
            sql.SQL("SELECT {} FROM volunteer_profiles WHERE id = %s").format(_columns(VOLUNTEER_COLUMNS)),
            (user_id,),
        )
        return await cur.fetchone()
