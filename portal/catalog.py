"""Demo activities for running the portal without a database.

Dates are laid out relative to ``now`` so the date filters always have
something to show.
"""

from datetime import datetime, time, timedelta
from typing import Any

from portal.eligibility import accessibility_from_access_label, suitable_for_from_access_label
from portal.models.activities import ParticipantActivity, VolunteerActivity
from portal.timewindows import start_of_today

# (title, day offset, start, end, location, access label, participant slots, volunteer slots, taken)
_DEMO_ROWS: list[tuple[str, int, time, time, str, str, int, int, int]] = [
    ("Gardening at the Community Plot", 0, time(9), time(11), "Tampines East CC", "Universal", 15, 4, 6),
    ("Art Jamming", 1, time(14), time(16), "Jurong West Library", "Sensory Friendly", 12, 3, 12),
    ("Morning Walk by the Bay", 2, time(7, 30), time(9), "Marina Bay", "Wheelchair Friendly", 25, 6, 10),
    ("Baking Workshop", 3, time(10), time(12), "Bedok East Kitchen", "Ambulant", 8, 2, 3),
    ("Board Games Afternoon", 5, time(15), time(17), "Toa Payoh Central Hub", "Universal", 20, 4, 19),
    ("Swimming Session", 9, time(9), time(10, 30), "Clementi West Pool", "Wheelchair Friendly", 10, 5, 2),
    ("Music Therapy Circle", 12, time(13), time(14, 30), "Bishan Central CC", "Sensory Friendly", 14, 2, 0),
    ("Museum Visit", 20, time(10), time(13), "City Hall", "Universal", 30, 6, 8),
    ("Cooking for Independence", 45, time(9), time(12), "Pasir Ris East CC", "Ambulant", 10, 3, 1),
]


def _demo_slots(now: datetime) -> list[dict[str, Any]]:
    today = start_of_today(now)
    slots = []
    for i, (title, offset, start, end, location, label, p_slots, v_slots, taken) in enumerate(_DEMO_ROWS, 1):
        day = today + timedelta(days=offset)
        slots.append({
            "id": str(i),
            "title": title,
            "start": day.replace(hour=start.hour, minute=start.minute),
            "end": day.replace(hour=end.hour, minute=end.minute),
            "location": location,
            "label": label,
            "participant_slots": p_slots,
            "volunteer_slots": v_slots,
            "taken": taken,
        })
    return slots


def demo_participant_activities(now: datetime) -> list[ParticipantActivity]:
    return [
        ParticipantActivity(
            id=s["id"],
            title=s["title"],
            start=s["start"],
            end=s["end"],
            location=s["location"],
            capacity=s["participant_slots"],
            filled=min(s["taken"], s["participant_slots"]),
            description=f"{s['title']} at {s['location']}.",
            meeting_point=f"{s['location']} main entrance",
            meals_provided=s["end"].hour >= 12 > s["start"].hour,
            accessibility=accessibility_from_access_label(s["label"]),
            suitable_for=suitable_for_from_access_label(s["label"]),
        )
        for s in _demo_slots(now)
    ]


def demo_volunteer_activities(now: datetime) -> list[VolunteerActivity]:
    return [
        VolunteerActivity(
            id=s["id"],
            title=s["title"],
            start=s["start"],
            end=s["end"],
            location=s["location"],
            capacity=s["volunteer_slots"],
            filled=min(s["taken"] // 4, s["volunteer_slots"]),
        )
        for s in _demo_slots(now)
    ]
