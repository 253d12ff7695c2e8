"""Pydantic models for matching API payloads."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from donation_matching.domain.learning import BaseMatch, FeedbackEvent
from donation_matching.domain.listings import Listing, RecipientProfile
from donation_matching.domain.matching import LearningProfile


class ListingPayload(BaseModel):
    """Donation listing payload."""

    id: str
    food_name: str | None = None
    food_type: str | None = None
    quantity: float | None = Field(default=None, ge=0)
    latitude: float | None = None
    longitude: float | None = None
    prepared_time: datetime | None = None
    expiry_time: datetime | None = None
    expiry: str | None = None
    verified: bool = False
    preparation_type: str | None = None
    donor_id: str | None = None
    location: str | None = None
    status: str | None = None

    def to_domain(self) -> Listing:
        """Convert to a domain listing."""
        return Listing(**self.model_dump())


class RecipientPayload(BaseModel):
    """Recipient profile payload."""

    food_preference: Literal["veg", "non-veg", "both"] = "both"
    capacity: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    preparation_capability: Literal["raw", "cooked", "both"] | None = None

    def to_domain(self) -> RecipientProfile:
        """Convert to a domain recipient profile."""
        return RecipientProfile(**self.model_dump())


class LearningProfilePayload(BaseModel):
    """Learned adjustment payload."""

    preferred_donors: list[str] = Field(default_factory=list)
    avoided_donors: list[str] = Field(default_factory=list)
    distance_boost: float = 0.0
    quantity_boost: float = 0.0
    freshness_boost: float = 0.0
    verified_boost: float = 0.0

    def to_domain(self) -> LearningProfile:
        """Convert to a domain learning profile."""
        return LearningProfile(
            preferred_donors=frozenset(self.preferred_donors),
            avoided_donors=frozenset(self.avoided_donors),
            distance_boost=self.distance_boost,
            quantity_boost=self.quantity_boost,
            freshness_boost=self.freshness_boost,
            verified_boost=self.verified_boost,
        )


class RankRequest(BaseModel):
    """Request to rank caller-supplied listings."""

    listings: list[ListingPayload]
    recipient: RecipientPayload = Field(default_factory=RecipientPayload)
    learning_profile: LearningProfilePayload | None = None
    now: datetime | None = None


class AvailableRankRequest(BaseModel):
    """Request to rank the currently available listings."""

    recipient: RecipientPayload = Field(default_factory=RecipientPayload)
    ngo_id: str | None = None
    use_learning: bool = False
    now: datetime | None = None


class FeedbackPayload(BaseModel):
    """Feedback event payload."""

    ngo_id: str
    donation_id: str
    donor_id: str
    action: Literal["accepted", "rejected", "ignored"]
    match_score: float
    food_type: str = ""
    quantity: float = 0.0
    expiry_hours: float = 24.0
    verified: bool = False
    distance_km: float | None = None
    freshness_percent: float | None = None

    def to_domain(self, timestamp: datetime) -> FeedbackEvent:
        """Convert to a domain feedback event stamped with ``timestamp``."""
        return FeedbackEvent(**self.model_dump(), timestamp=timestamp)


class BaseMatchPayload(BaseModel):
    """Scored donation to personalize."""

    donation_id: str
    donor_id: str
    base_score: float = Field(ge=0, le=100)

    def to_domain(self) -> BaseMatch:
        """Convert to a domain base match."""
        return BaseMatch(**self.model_dump())


class RecommendationRequest(BaseModel):
    """Request for personalized recommendations."""

    ngo_id: str
    matches: list[BaseMatchPayload]
