"""Domain models for match scoring and ranking."""

from dataclasses import dataclass, field

from donation_matching.domain.listings import Listing


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-factor sub-scores, each in [0, 1] before weighting."""

    food_type_score: float
    freshness_score: float
    quantity_score: float
    distance_score: float
    verified_score: float
    urgency_score: float


@dataclass(frozen=True)
class MatchResult:
    """Score of one listing against a recipient, with side values."""

    score: float
    breakdown: ScoreBreakdown
    expiry_hours: float
    distance_km: float | None = None
    freshness_percent: float | None = None


@dataclass(frozen=True)
class LearningProfile:
    """Learned score adjustments for a recipient."""

    preferred_donors: frozenset[str] = field(default_factory=frozenset)
    avoided_donors: frozenset[str] = field(default_factory=frozenset)
    distance_boost: float = 0.0
    quantity_boost: float = 0.0
    freshness_boost: float = 0.0
    verified_boost: float = 0.0

    @property
    def pattern_adjustment(self) -> float:
        """Return the summed boosts on the 0-100 score scale."""
        return (
            self.distance_boost
            + self.quantity_boost
            + self.freshness_boost
            + self.verified_boost
        ) * 100


@dataclass(frozen=True)
class ScoredListing:
    """A listing annotated with its match score."""

    listing: Listing
    match_score: float
    base_score: float
    breakdown: ScoreBreakdown
    expiry_hours: float
    distance_km: float | None = None
    freshness_percent: float | None = None
    ai_adjusted: bool = False


@dataclass(frozen=True)
class MatchQuality:
    """Display bucket for a match score."""

    label: str
    color: str
    emoji: str
