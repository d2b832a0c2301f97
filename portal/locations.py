from typing import Literal

AreaName = Literal["Central", "East", "West"]


def area_from_location(location: str) -> AreaName:
    """Bucket a free-text location into a coarse area; default Central."""
    text = location.lower()
    if "west" in text:
        return "West"
    if "east" in text:
        return "East"
    return "Central"
