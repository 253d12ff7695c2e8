"""Smart matching engine ranking donation listings for a recipient.

Listings are ranked in three stages:

1. Pre-filter: drop expired listings and food-type mismatches.
2. Score: weighted sum of six factors on a 0-100 scale.
3. Rank: apply optional learned adjustments, then sort by score, urgency
   and distance.

Every stage reads the same ``now`` so filtering and scoring agree.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from donation_matching.domain.listings import (
    FoodPreference,
    Listing,
    RecipientProfile,
    normalize_food_type,
    parse_instant,
    resolve_expiry,
)
from donation_matching.domain.matching import (
    LearningProfile,
    MatchResult,
    ScoreBreakdown,
    ScoredListing,
)
from donation_matching.services.geo import haversine_km

if TYPE_CHECKING:
    from donation_matching.services.learning import LearningService

FOOD_TYPE_WEIGHT = 0.25
FRESHNESS_WEIGHT = 0.25
QUANTITY_WEIGHT = 0.15
DISTANCE_WEIGHT = 0.20
VERIFIED_WEIGHT = 0.10
URGENCY_WEIGHT = 0.05

MAX_DISTANCE_KM = 50.0
FRESHNESS_RAMP_HOURS = 24.0
DEFAULT_EXPIRY_HOURS = 24.0
NEUTRAL_SCORE = 0.5
UNKNOWN_FOOD_TYPE_SCORE = 0.6

PREFERRED_DONOR_BONUS = 5.0
AVOIDED_DONOR_PENALTY = 10.0

# (upper bound in hours, urgency score), checked in order.
_URGENCY_STEPS = ((2.0, 1.0), (6.0, 0.8), (12.0, 0.6), (24.0, 0.4))
_SECONDS_PER_HOUR = 3600.0

_logger = logging.getLogger(__name__)


class ListingRepository(Protocol):
    """Source of donation listings."""

    def list_available_listings(self) -> list[Listing]:
        """Return listings that are still open for claiming."""


def prefilter_listings(
    listings: Iterable[Listing], preference: FoodPreference, now: datetime
) -> list[Listing]:
    """Drop expired listings and listings that conflict with the preference.

    Listings whose expiry cannot be determined are kept, and so are
    listings whose food type normalizes to unknown.
    """
    kept = []
    for listing in listings:
        expiry = resolve_expiry(listing)
        if expiry is not None and expiry < now:
            continue
        if preference != "both":
            category = normalize_food_type(listing.food_type)
            if category not in {"unknown", preference}:
                continue
        kept.append(listing)
    return kept


def hours_until_expiry(listing: Listing, now: datetime) -> float:
    """Return hours left before expiry, 24 when unknown, never negative."""
    expiry = resolve_expiry(listing)
    if expiry is None:
        return DEFAULT_EXPIRY_HOURS
    return max(0.0, _hours_between(now, expiry))


def food_type_score(listing: Listing, preference: FoodPreference) -> float:
    """Score compatibility between the listing category and the preference."""
    if preference == "both":
        return 1.0
    category = normalize_food_type(listing.food_type)
    if category == "unknown":
        return UNKNOWN_FOOD_TYPE_SCORE
    if category == preference:
        return 1.0
    return 0.0


def freshness_score(listing: Listing, now: datetime) -> tuple[float, float | None]:
    """Return the freshness sub-score and the remaining-life fraction.

    The fraction is only reported when both prepared and expiry times are
    known and the food has not expired yet.
    """
    expiry = resolve_expiry(listing)
    prepared = parse_instant(listing.prepared_time)
    if expiry is not None and prepared is not None and prepared < expiry:
        lifespan = (expiry - prepared).total_seconds()
        remaining = (expiry - now).total_seconds()
        if remaining <= 0:
            return 0.0, None
        fraction = remaining / lifespan
        return _clamp(fraction, 0.0, 1.0), fraction
    if expiry is not None:
        hours = _hours_between(now, expiry)
        if hours <= 0:
            return 0.0, None
        if hours >= FRESHNESS_RAMP_HOURS:
            return 1.0, None
        return hours / FRESHNESS_RAMP_HOURS, None
    return NEUTRAL_SCORE, None


def quantity_score(listing: Listing, recipient: RecipientProfile) -> float:
    """Score how much of the recipient's capacity the listing fills."""
    quantity = listing.quantity or 0.0
    capacity = recipient.effective_capacity
    if quantity > 0 and capacity > 0:
        return min(1.0, quantity / capacity)
    return NEUTRAL_SCORE


def listing_distance_km(
    listing: Listing, recipient: RecipientProfile
) -> float | None:
    """Return the recipient-to-listing distance, or None without coordinates."""
    if (
        recipient.latitude is None
        or recipient.longitude is None
        or listing.latitude is None
        or listing.longitude is None
    ):
        return None
    return haversine_km(
        recipient.latitude, recipient.longitude, listing.latitude, listing.longitude
    )


def distance_score(distance_km: float | None) -> float:
    """Decay linearly to zero at the maximum matching distance."""
    if distance_km is None:
        return NEUTRAL_SCORE
    return max(0.0, 1.0 - distance_km / MAX_DISTANCE_KM)


def urgency_score(expiry_hours: float) -> float:
    """Step function favouring listings that expire soon."""
    if expiry_hours <= 0:
        return 0.0
    for upper_bound, score in _URGENCY_STEPS:
        if expiry_hours <= upper_bound:
            return score
    return 0.2


def calculate_match_score(
    listing: Listing, recipient: RecipientProfile, now: datetime
) -> MatchResult:
    """Compute the weighted 0-100 match score for one listing."""
    freshness, freshness_percent = freshness_score(listing, now)
    distance_km = listing_distance_km(listing, recipient)
    expiry_hours = hours_until_expiry(listing, now)
    breakdown = ScoreBreakdown(
        food_type_score=food_type_score(listing, recipient.food_preference),
        freshness_score=freshness,
        quantity_score=quantity_score(listing, recipient),
        distance_score=distance_score(distance_km),
        verified_score=1.0 if listing.verified else 0.0,
        urgency_score=urgency_score(expiry_hours),
    )
    score = (
        breakdown.food_type_score * FOOD_TYPE_WEIGHT
        + breakdown.freshness_score * FRESHNESS_WEIGHT
        + breakdown.quantity_score * QUANTITY_WEIGHT
        + breakdown.distance_score * DISTANCE_WEIGHT
        + breakdown.verified_score * VERIFIED_WEIGHT
        + breakdown.urgency_score * URGENCY_WEIGHT
    ) * 100
    return MatchResult(
        score=score,
        breakdown=breakdown,
        expiry_hours=expiry_hours,
        distance_km=distance_km,
        freshness_percent=freshness_percent,
    )


def apply_learning_adjustment(
    scored: ScoredListing, learning_profile: LearningProfile | None
) -> ScoredListing:
    """Layer learned donor preferences and pattern boosts onto the base score."""
    if learning_profile is None:
        return replace(scored, match_score=scored.base_score, ai_adjusted=False)
    final_score = scored.base_score
    donor_id = scored.listing.donor_id
    if donor_id in learning_profile.preferred_donors:
        final_score += PREFERRED_DONOR_BONUS
    if donor_id in learning_profile.avoided_donors:
        final_score -= AVOIDED_DONOR_PENALTY
    final_score += learning_profile.pattern_adjustment
    final_score = _clamp(final_score, 0.0, 100.0)
    return replace(
        scored,
        match_score=final_score,
        ai_adjusted=final_score != scored.base_score,
    )


def rank_scored_listings(scored: Iterable[ScoredListing]) -> list[ScoredListing]:
    """Stable sort by score desc, then hours to expiry asc, then distance asc."""
    return sorted(scored, key=_rank_key)


def sort_listings_by_relevance(
    listings: Sequence[Listing],
    recipient: RecipientProfile,
    learning_profile: LearningProfile | None = None,
    now: datetime | None = None,
) -> list[ScoredListing]:
    """Filter, score and rank listings for a recipient.

    ``now`` defaults to the current UTC time and is read once per call.
    """
    resolved_now = parse_instant(now) or datetime.now(tz=UTC)
    candidates = prefilter_listings(
        listings, recipient.food_preference, resolved_now
    )
    scored = []
    for listing in candidates:
        result = calculate_match_score(listing, recipient, resolved_now)
        base = ScoredListing(
            listing=listing,
            match_score=result.score,
            base_score=result.score,
            breakdown=result.breakdown,
            expiry_hours=result.expiry_hours,
            distance_km=result.distance_km,
            freshness_percent=result.freshness_percent,
        )
        scored.append(apply_learning_adjustment(base, learning_profile))
    return rank_scored_listings(scored)


@dataclass
class MatchingService:
    """Service ranking listings for recipients."""

    listing_repository: ListingRepository
    learning_service: "LearningService | None" = None
    debug: bool = False

    def rank(
        self,
        listings: Sequence[Listing],
        recipient: RecipientProfile,
        learning_profile: LearningProfile | None = None,
        now: datetime | None = None,
    ) -> list[ScoredListing]:
        """Rank caller-supplied listings for a recipient."""
        ranked = sort_listings_by_relevance(
            listings, recipient, learning_profile=learning_profile, now=now
        )
        if self.debug:
            _logger.info(
                "Ranked listings: input=%s kept=%s learning=%s",
                len(listings),
                len(ranked),
                learning_profile is not None,
            )
        return ranked

    def rank_available(
        self,
        recipient: RecipientProfile,
        ngo_id: str | None = None,
        use_learning: bool = False,
        now: datetime | None = None,
    ) -> list[ScoredListing]:
        """Rank the repository's open listings for a recipient."""
        listings = self.listing_repository.list_available_listings()
        learning_profile = None
        if use_learning and ngo_id and self.learning_service is not None:
            summary = self.learning_service.build_recipient_summary(ngo_id)
            learning_profile = summary.profile
        return self.rank(
            listings, recipient, learning_profile=learning_profile, now=now
        )


def _rank_key(scored: ScoredListing) -> tuple[float, float, float]:
    expiry = scored.expiry_hours
    distance = scored.distance_km
    return (
        -scored.match_score,
        expiry if expiry is not None else float("inf"),
        distance if distance is not None else float("inf"),
    )


def _hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / _SECONDS_PER_HOUR


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
