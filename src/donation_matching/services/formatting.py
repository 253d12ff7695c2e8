"""Display helpers for match scores, distances and expiry times."""

import math

from donation_matching.domain.matching import MatchQuality

_QUALITY_BUCKETS = (
    (85.0, MatchQuality(label="Excellent Match", color="green", emoji="🎯")),
    (70.0, MatchQuality(label="Great Match", color="blue", emoji="⭐")),
    (55.0, MatchQuality(label="Good Match", color="cyan", emoji="✓")),
    (40.0, MatchQuality(label="Fair Match", color="amber", emoji="○")),
)
_LOW_QUALITY = MatchQuality(label="Low Match", color="slate", emoji="·")


def get_match_quality(score: float) -> MatchQuality:
    """Return the quality bucket for a 0-100 match score."""
    for threshold, quality in _QUALITY_BUCKETS:
        if score >= threshold:
            return quality
    return _LOW_QUALITY


def format_distance(km: float | None) -> str:
    """Format a distance as meters below 1 km, otherwise km to one decimal."""
    if km is None:
        return "—"
    if km < 1:
        return f"{_round_half_up(km * 1000)}m"
    return f"{_round_half_up(km * 10) / 10:.1f}km"


def format_expiry_time(hours: float) -> str:
    """Format hours to expiry as minutes, hours or days."""
    if hours < 0:
        return "Expired"
    if hours < 1:
        return f"{_round_half_up(hours * 60)}min"
    if hours < 24:  # noqa: PLR2004
        return f"{_round_half_up(hours)}h"
    return f"{_round_half_up(hours / 24)}d"


def _round_half_up(value: float) -> int:
    """Round halves up, not to even."""
    return math.floor(value + 0.5)
