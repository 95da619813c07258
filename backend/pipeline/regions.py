"""Region classification by fixed location keywords."""

from typing import Literal

Region = Literal["boston", "providence"]

# Checked in order; the first region with a matching keyword wins
REGION_KEYWORDS: dict[Region, tuple[str, ...]] = {
    "boston": ("boston", "cambridge", "somerville"),
    "providence": ("providence", "rhode island", " ri"),
}


def classify_region(location: str | None) -> Region | None:
    """Return the local region a location belongs to, or None."""
    if not location:
        return None
    lowered = location.lower()
    for region, keywords in REGION_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return region
    return None


def is_local_priority(location: str | None) -> bool:
    return classify_region(location) is not None
