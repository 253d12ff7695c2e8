"""Domain models for feedback-based match learning."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from donation_matching.domain.matching import LearningProfile

FeedbackAction = Literal["accepted", "rejected", "ignored"]
ReputationLevel = Literal["excellent", "good", "average", "new"]


@dataclass(frozen=True)
class FeedbackEvent:
    """An NGO's reaction to a recommended listing."""

    ngo_id: str
    donation_id: str
    donor_id: str
    action: FeedbackAction
    match_score: float
    food_type: str
    quantity: float
    expiry_hours: float
    verified: bool
    distance_km: float | None = None
    freshness_percent: float | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True)
class RecipientLearningSummary:
    """Historical feedback statistics for an NGO."""

    ngo_id: str
    total_accepts: int = 0
    total_rejects: int = 0
    acceptance_rate: float = 0.5
    avg_accepted_distance: float = 10.0
    avg_accepted_quantity: float = 50.0
    avg_accepted_freshness: float = 0.7
    profile: LearningProfile = field(default_factory=LearningProfile)


@dataclass(frozen=True)
class DonorReputation:
    """Reputation of a donor across all NGOs."""

    donor_id: str
    total_claims: int = 0
    acceptance_rate: float = 0.5
    avg_match_score: float = 50.0
    preferred_by_ngos: tuple[str, ...] = ()
    reputation: ReputationLevel = "new"


@dataclass(frozen=True)
class BaseMatch:
    """A scored donation awaiting personalization."""

    donation_id: str
    donor_id: str
    base_score: float


@dataclass(frozen=True)
class Recommendation:
    """A personalized recommendation with human-readable reasons."""

    donation_id: str
    final_score: float
    reasons: tuple[str, ...] = ()
