"""Admin service for reporting."""

from collections import Counter
from dataclasses import dataclass

from donation_matching.domain.learning import FeedbackEvent
from donation_matching.services.learning import FeedbackRepository
from donation_matching.services.matching import ListingRepository


@dataclass
class AdminService:
    """Service for admin dashboards."""

    feedback_repository: FeedbackRepository
    listing_repository: ListingRepository

    def feedback_report(self, limit: int) -> dict[str, object]:
        """Return recent feedback events and their counts by action."""
        events = self.feedback_repository.list_recent_events(limit)
        return {
            "feedback": [_event_to_dict(event) for event in events],
            "totals": _totals_by_action(events),
        }

    def count_available_listings(self) -> int:
        """Return how many listings are currently open."""
        return len(self.listing_repository.list_available_listings())


def _event_to_dict(event: FeedbackEvent) -> dict[str, object]:
    return {
        "ngo_id": event.ngo_id,
        "donation_id": event.donation_id,
        "donor_id": event.donor_id,
        "action": event.action,
        "match_score": event.match_score,
        "timestamp": event.timestamp.isoformat() if event.timestamp else None,
    }


def _totals_by_action(events: list[FeedbackEvent]) -> dict[str, int]:
    totals = Counter(event.action for event in events)
    return {
        action: totals.get(action, 0) for action in ("accepted", "rejected", "ignored")
    }
