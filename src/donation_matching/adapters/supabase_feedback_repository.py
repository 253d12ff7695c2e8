"""Supabase repository for match feedback events."""

from dataclasses import dataclass

from supabase import Client

from donation_matching.domain.learning import FeedbackEvent
from donation_matching.domain.listings import parse_instant
from donation_matching.services.learning import FeedbackRepository

_COLUMNS = (
    "ngo_id, donation_id, donor_id, action, match_score, food_type, quantity, "
    "distance_km, expiry_hours, verified, freshness_percent, timestamp"
)


@dataclass
class SupabaseFeedbackRepository(FeedbackRepository):
    """Supabase-backed feedback repository."""

    client: Client
    table_name: str = "ai_feedback"

    def create_event(self, event: FeedbackEvent) -> None:
        """Insert a feedback event row."""
        self.client.table(self.table_name).insert(
            {
                "ngo_id": event.ngo_id,
                "donation_id": event.donation_id,
                "donor_id": event.donor_id,
                "action": event.action,
                "match_score": event.match_score,
                "food_type": event.food_type,
                "quantity": event.quantity,
                "distance_km": event.distance_km,
                "expiry_hours": event.expiry_hours,
                "verified": event.verified,
                "freshness_percent": event.freshness_percent,
                "timestamp": event.timestamp.isoformat() if event.timestamp else None,
            }
        ).execute()

    def list_recipient_events(self, ngo_id: str, limit: int) -> list[FeedbackEvent]:
        """Return an NGO's most recent feedback events."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("ngo_id", ngo_id)
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def list_donor_events(self, donor_id: str, limit: int) -> list[FeedbackEvent]:
        """Return the most recent feedback events about a donor."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("donor_id", donor_id)
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def list_recent_events(self, limit: int) -> list[FeedbackEvent]:
        """Return the most recent feedback events overall."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> FeedbackEvent:
    distance_km = row.get("distance_km")
    freshness_percent = row.get("freshness_percent")
    return FeedbackEvent(
        ngo_id=str(row.get("ngo_id", "")),
        donation_id=str(row.get("donation_id", "")),
        donor_id=str(row.get("donor_id", "")),
        action=row.get("action", "ignored"),  # type: ignore[arg-type]
        match_score=float(row.get("match_score") or 0.0),
        food_type=str(row.get("food_type") or ""),
        quantity=float(row.get("quantity") or 0.0),
        expiry_hours=float(row.get("expiry_hours") or 0.0),
        verified=bool(row.get("verified")),
        distance_km=float(distance_km) if distance_km is not None else None,
        freshness_percent=(
            float(freshness_percent) if freshness_percent is not None else None
        ),
        timestamp=parse_instant(row.get("timestamp")),
    )
