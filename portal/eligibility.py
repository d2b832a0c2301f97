"""Which activities are shown as suitable for a participant's disability."""

from portal.models.activities import Accessibility, ParticipantActivity
from portal.models.profiles import DISABILITIES

# Each category requires every listed flag. Categories missing here
# ("Other") are never filtered.
REQUIRED_FLAGS: dict[str, tuple[str, ...]] = {
    "Physical Disability": ("wheelchair_accessible",),
    "Visual Impairment": ("visually_impaired_friendly",),
    "Hearing Impairment": ("hearing_impaired_friendly",),
    "Intellectual Disability": ("intellectual_disability_friendly",),
    "Autism Spectrum": ("autism_friendly",),
    "Multiple Disabilities": ("wheelchair_accessible", "visually_impaired_friendly"),
}

# Coarse labels staff pick when creating an activity.
ACCESS_LABELS = ("Universal", "Wheelchair Friendly", "Sensory Friendly", "Ambulant")

_SUITABLE_BY_LABEL: dict[str, tuple[str, ...]] = {
    "Universal": DISABILITIES,
    "Wheelchair Friendly": ("Physical Disability", "Multiple Disabilities"),
    "Sensory Friendly": ("Autism Spectrum", "Visual Impairment", "Hearing Impairment"),
    "Ambulant": ("Visual Impairment", "Hearing Impairment", "Intellectual Disability", "Other"),
}


def is_activity_suitable(activity: ParticipantActivity, disability: str) -> bool:
    if disability in activity.suitable_for:
        return True
    required = REQUIRED_FLAGS.get(disability)
    if required is None:
        return True
    return all(getattr(activity.accessibility, flag) for flag in required)


def accessibility_from_access_label(label: str | None) -> Accessibility:
    """Derive accessibility flags from a ``disability_access`` label.

    A missing label is treated as "Universal".
    """
    label = label or "Universal"
    universal = label == "Universal"
    sensory = label == "Sensory Friendly"
    return Accessibility(
        wheelchair_accessible=universal or label == "Wheelchair Friendly",
        visually_impaired_friendly=universal or sensory,
        hearing_impaired_friendly=universal or sensory,
        intellectual_disability_friendly=universal,
        autism_friendly=universal or sensory,
    )


def suitable_for_from_access_label(label: str | None) -> list[str]:
    return list(_SUITABLE_BY_LABEL.get(label or "Universal", ()))
