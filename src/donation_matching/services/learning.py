"""Feedback-based learning for match recommendations.

NGO accept/reject events are recorded and aggregated into a
``LearningProfile`` of preferred/avoided donors and small pattern boosts,
and into per-donor reputations.
"""

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from donation_matching.domain.learning import (
    BaseMatch,
    DonorReputation,
    FeedbackAction,
    FeedbackEvent,
    Recommendation,
    RecipientLearningSummary,
)
from donation_matching.domain.matching import LearningProfile, ScoredListing

PREFERENCE_RATE_THRESHOLD = 0.7
MIN_DONOR_EVENTS = 2
MAX_BOOST = 0.1
ADJUSTMENT_REASON_THRESHOLD = 5.0

_REPUTATION_BONUS = {"excellent": 3.0, "good": 1.0, "average": 0.0, "new": -1.0}

_logger = logging.getLogger(__name__)


class FeedbackRepository(Protocol):
    """Persistence interface for feedback events."""

    def create_event(self, event: FeedbackEvent) -> None:
        """Store a feedback event."""

    def list_recipient_events(self, ngo_id: str, limit: int) -> list[FeedbackEvent]:
        """Return an NGO's most recent feedback events."""

    def list_donor_events(self, donor_id: str, limit: int) -> list[FeedbackEvent]:
        """Return the most recent feedback events about a donor."""

    def list_recent_events(self, limit: int) -> list[FeedbackEvent]:
        """Return the most recent feedback events overall."""


def feedback_from_scored(
    ngo_id: str,
    scored: ScoredListing,
    action: FeedbackAction,
    timestamp: datetime | None = None,
) -> FeedbackEvent:
    """Capture the features of a scored listing as a feedback event."""
    listing = scored.listing
    return FeedbackEvent(
        ngo_id=ngo_id,
        donation_id=listing.id,
        donor_id=listing.donor_id or "",
        action=action,
        match_score=scored.match_score,
        food_type=listing.food_type or "",
        quantity=listing.quantity or 0.0,
        expiry_hours=scored.expiry_hours,
        verified=listing.verified,
        distance_km=scored.distance_km,
        freshness_percent=scored.freshness_percent,
        timestamp=timestamp or datetime.now(tz=UTC),
    )


def summarize_recipient_feedback(
    ngo_id: str, events: Sequence[FeedbackEvent]
) -> RecipientLearningSummary:
    """Learn an NGO's donor preferences and pattern boosts from feedback."""
    if not events:
        return RecipientLearningSummary(ngo_id=ngo_id)

    accepts = [event for event in events if event.action == "accepted"]
    rejects = [event for event in events if event.action == "rejected"]
    decided = len(accepts) + len(rejects)
    acceptance_rate = len(accepts) / decided if decided else 0.5

    donor_accepts = Counter(event.donor_id for event in accepts)
    donor_rejects = Counter(event.donor_id for event in rejects)
    preferred = _dominant_donors(donor_accepts, donor_rejects)
    avoided = _dominant_donors(donor_rejects, donor_accepts)

    avg_accepted_distance = _average_or(
        [e.distance_km for e in accepts if e.distance_km is not None],
        len(accepts),
        10.0,
    )
    avg_accepted_quantity = _average_or(
        [e.quantity for e in accepts], len(accepts), 50.0
    )
    avg_accepted_freshness = _average_or(
        [e.freshness_percent for e in accepts if e.freshness_percent is not None],
        len(accepts),
        0.7,
    )
    avg_rejected_distance = _average_or(
        [e.distance_km for e in rejects if e.distance_km is not None],
        len(rejects),
        20.0,
    )
    avg_rejected_quantity = _average_or(
        [e.quantity for e in rejects], len(rejects), 100.0
    )
    avg_rejected_freshness = _average_or(
        [e.freshness_percent for e in rejects if e.freshness_percent is not None],
        len(rejects),
        0.5,
    )

    accepted_verified_rate = (
        sum(1 for e in accepts if e.verified) / len(accepts) if accepts else 0.5
    )
    rejected_verified_rate = _average_or(
        [1.0 for e in rejects if e.verified], len(rejects), 0.5
    )

    profile = LearningProfile(
        preferred_donors=frozenset(preferred),
        avoided_donors=frozenset(avoided),
        distance_boost=_clamp_boost(
            (avg_rejected_distance - avg_accepted_distance) / 50 * 0.1
        ),
        quantity_boost=_clamp_boost(
            (avg_rejected_quantity - avg_accepted_quantity) / 100 * 0.1
        ),
        freshness_boost=_clamp_boost(
            (avg_accepted_freshness - avg_rejected_freshness) * 0.2
        ),
        verified_boost=_clamp_boost(
            (accepted_verified_rate - rejected_verified_rate) * 0.2
        ),
    )
    return RecipientLearningSummary(
        ngo_id=ngo_id,
        total_accepts=len(accepts),
        total_rejects=len(rejects),
        acceptance_rate=acceptance_rate,
        avg_accepted_distance=avg_accepted_distance,
        avg_accepted_quantity=avg_accepted_quantity,
        avg_accepted_freshness=avg_accepted_freshness,
        profile=profile,
    )


def summarize_donor_feedback(
    donor_id: str, events: Sequence[FeedbackEvent]
) -> DonorReputation:
    """Rate a donor from the feedback NGOs left on their donations."""
    if not events:
        return DonorReputation(donor_id=donor_id)

    accepts = [event for event in events if event.action == "accepted"]
    total_claims = len(accepts)
    acceptance_rate = total_claims / len(events)
    avg_match_score = sum(event.match_score for event in events) / len(events)
    ngo_accepts = Counter(event.ngo_id for event in accepts)
    preferred_by = tuple(
        ngo_id for ngo_id, count in ngo_accepts.items() if count >= MIN_DONOR_EVENTS
    )

    if total_claims >= 10 and acceptance_rate >= 0.7:  # noqa: PLR2004
        reputation = "excellent"
    elif total_claims >= 5 and acceptance_rate >= 0.5:  # noqa: PLR2004
        reputation = "good"
    elif total_claims >= MIN_DONOR_EVENTS:
        reputation = "average"
    else:
        reputation = "new"

    return DonorReputation(
        donor_id=donor_id,
        total_claims=total_claims,
        acceptance_rate=acceptance_rate,
        avg_match_score=avg_match_score,
        preferred_by_ngos=preferred_by,
        reputation=reputation,
    )


def adjust_score_with_learning(
    base_score: float,
    donor_id: str,
    profile: LearningProfile,
    reputation: DonorReputation,
) -> float:
    """Adjust a base score with donor preferences, reputation and boosts."""
    adjusted = base_score
    if donor_id in profile.preferred_donors:
        adjusted += 5
    if donor_id in profile.avoided_donors:
        adjusted -= 10
    adjusted += _REPUTATION_BONUS[reputation.reputation]
    adjusted += profile.pattern_adjustment
    return max(0.0, min(100.0, adjusted))


@dataclass
class LearningService:
    """Service recording feedback and building learned profiles."""

    repository: FeedbackRepository
    recipient_history_limit: int = 100
    donor_history_limit: int = 50

    def log_feedback(self, event: FeedbackEvent) -> None:
        """Persist a feedback event; failures are logged, not raised."""
        try:
            self.repository.create_event(event)
        except Exception:
            _logger.exception(
                "Failed to log feedback: action=%s donation_id=%s",
                event.action,
                event.donation_id,
            )
            return
        _logger.info(
            "Feedback logged: action=%s donation_id=%s",
            event.action,
            event.donation_id,
        )

    def log_accept(self, ngo_id: str, scored: ScoredListing) -> FeedbackEvent:
        """Record that an NGO accepted a listing."""
        event = feedback_from_scored(ngo_id, scored, "accepted")
        self.log_feedback(event)
        return event

    def log_reject(self, ngo_id: str, scored: ScoredListing) -> FeedbackEvent:
        """Record that an NGO rejected a listing."""
        event = feedback_from_scored(ngo_id, scored, "rejected")
        self.log_feedback(event)
        return event

    def build_recipient_summary(self, ngo_id: str) -> RecipientLearningSummary:
        """Build an NGO's learning summary, neutral if history is unavailable."""
        try:
            events = self.repository.list_recipient_events(
                ngo_id, self.recipient_history_limit
            )
        except Exception:
            _logger.exception("Failed to load feedback for ngo_id=%s", ngo_id)
            return RecipientLearningSummary(ngo_id=ngo_id)
        return summarize_recipient_feedback(ngo_id, events)

    def build_donor_reputation(self, donor_id: str) -> DonorReputation:
        """Build a donor's reputation, neutral if history is unavailable."""
        try:
            events = self.repository.list_donor_events(
                donor_id, self.donor_history_limit
            )
        except Exception:
            _logger.exception("Failed to load feedback for donor_id=%s", donor_id)
            return DonorReputation(donor_id=donor_id)
        return summarize_donor_feedback(donor_id, events)

    def get_personalized_recommendations(
        self, ngo_id: str, base_matches: Sequence[BaseMatch]
    ) -> list[Recommendation]:
        """Re-score base matches with learned preferences and explain why."""
        summary = self.build_recipient_summary(ngo_id)
        profile = summary.profile
        reputations: dict[str, DonorReputation] = {}
        for match in base_matches:
            if match.donor_id not in reputations:
                reputations[match.donor_id] = self.build_donor_reputation(
                    match.donor_id
                )

        recommendations = []
        for match in base_matches:
            reputation = reputations[match.donor_id]
            final_score = adjust_score_with_learning(
                match.base_score, match.donor_id, profile, reputation
            )
            reasons = []
            if match.donor_id in profile.preferred_donors:
                reasons.append("✅ Preferred donor (you frequently accept from them)")
            if match.donor_id in profile.avoided_donors:
                reasons.append("⚠️ Previously avoided")
            if reputation.reputation == "excellent":
                reasons.append("⭐ Excellent donor reputation")
            if abs(final_score - match.base_score) > ADJUSTMENT_REASON_THRESHOLD:
                change = f"{match.base_score:.0f} → {final_score:.0f}"
                reasons.append(f"🧠 AI adjusted score: {change}")
            recommendations.append(
                Recommendation(
                    donation_id=match.donation_id,
                    final_score=final_score,
                    reasons=tuple(reasons),
                )
            )
        recommendations.sort(key=lambda rec: rec.final_score, reverse=True)
        return recommendations


def _dominant_donors(primary: Counter[str], other: Counter[str]) -> list[str]:
    """Return donors whose share of ``primary`` events meets the threshold."""
    return [
        donor_id
        for donor_id, count in primary.items()
        if count / (count + other.get(donor_id, 0)) >= PREFERENCE_RATE_THRESHOLD
        and count >= MIN_DONOR_EVENTS
    ]


def _average_or(values: Sequence[float], count: int, default: float) -> float:
    """Average ``values`` over ``count``; zero or empty averages use the default."""
    if count == 0:
        return default
    return sum(values) / count or default


def _clamp_boost(value: float) -> float:
    return max(-MAX_BOOST, min(MAX_BOOST, value))
