"""Database access: pool lifecycle and query functions.

Callers import the package (``from portal import db``) and call through it,
so tests can patch ``portal.db.<function>``.
"""

from portal.db.activities import (
    activities_created_by,
    count_activities,
    create_activity,
    delete_activity,
    get_activity,
    list_activities,
    next_activity,
    update_activity,
)
from portal.db.core import close_pool, init_pool, ping
from portal.db.profiles import (
    count_profiles_by_role,
    ensure_profile,
    get_profile,
    get_volunteer_profile,
    list_profiles,
    update_profile,
    upsert_volunteer_profile,
)
from portal.db.registrations import (
    confirm_registration,
    confirmed_counts,
    confirmed_counts_by_type,
    count_confirmed,
    count_registrations_by_status,
    list_registrations,
    registrations_for_activity,
    registrations_for_user,
    update_registration_status,
    upsert_registration,
)
from portal.db.schema import get_schema_info

__all__ = [
    "activities_created_by",
    "close_pool",
    "confirm_registration",
    "confirmed_counts",
    "confirmed_counts_by_type",
    "count_activities",
    "count_confirmed",
    "count_profiles_by_role",
    "count_registrations_by_status",
    "create_activity",
    "delete_activity",
    "ensure_profile",
    "get_activity",
    "get_profile",
    "get_schema_info",
    "get_volunteer_profile",
    "init_pool",
    "list_activities",
    "list_profiles",
    "list_registrations",
    "next_activity",
    "ping",
    "registrations_for_activity",
    "registrations_for_user",
    "update_activity",
    "update_profile",
    "update_registration_status",
    "upsert_registration",
    "upsert_volunteer_profile",
]
