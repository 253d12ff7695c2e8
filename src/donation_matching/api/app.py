"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import UTC, datetime

from fastapi import FastAPI, Request

from donation_matching.api.admin import router as admin_router
from donation_matching.api.models import (
    AvailableRankRequest,
    FeedbackPayload,
    RankRequest,
    RecommendationRequest,
)
from donation_matching.app_logging import configure_logging
from donation_matching.containers import AppContainer
from donation_matching.domain.learning import DonorReputation, RecipientLearningSummary
from donation_matching.domain.matching import ScoredListing
from donation_matching.services.formatting import (
    format_distance,
    format_expiry_time,
    get_match_quality,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting matching API (%s)", container.settings.environment)
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/matching/rank")
    async def rank_listings(
        payload: RankRequest, request: Request
    ) -> dict[str, object]:
        """Rank the supplied listings for a recipient."""
        state_container: AppContainer = request.app.state.container
        learning_profile = (
            payload.learning_profile.to_domain() if payload.learning_profile else None
        )
        ranked = state_container.matching_service.rank(
            [listing.to_domain() for listing in payload.listings],
            payload.recipient.to_domain(),
            learning_profile=learning_profile,
            now=payload.now,
        )
        return {"listings": [_scored_listing_to_dict(item) for item in ranked]}

    @app.post("/matching/available")
    async def rank_available(
        payload: AvailableRankRequest, request: Request
    ) -> dict[str, object]:
        """Rank the currently available listings for a recipient."""
        state_container: AppContainer = request.app.state.container
        ranked = state_container.matching_service.rank_available(
            payload.recipient.to_domain(),
            ngo_id=payload.ngo_id,
            use_learning=payload.use_learning,
            now=payload.now,
        )
        return {"listings": [_scored_listing_to_dict(item) for item in ranked]}

    @app.post("/feedback")
    async def record_feedback(
        payload: FeedbackPayload, request: Request
    ) -> dict[str, str]:
        """Record an NGO's accept/reject/ignore decision."""
        state_container: AppContainer = request.app.state.container
        state_container.learning_service.log_feedback(
            payload.to_domain(datetime.now(tz=UTC))
        )
        return {"status": "ok"}

    @app.get("/learning/recipients/{ngo_id}")
    async def recipient_learning(ngo_id: str, request: Request) -> dict[str, object]:
        """Return an NGO's learned matching preferences."""
        state_container: AppContainer = request.app.state.container
        summary = state_container.learning_service.build_recipient_summary(ngo_id)
        return _summary_to_dict(summary)

    @app.get("/learning/donors/{donor_id}")
    async def donor_reputation(donor_id: str, request: Request) -> dict[str, object]:
        """Return a donor's reputation."""
        state_container: AppContainer = request.app.state.container
        reputation = state_container.learning_service.build_donor_reputation(donor_id)
        return _reputation_to_dict(reputation)

    @app.post("/learning/recommendations")
    async def recommendations(
        payload: RecommendationRequest, request: Request
    ) -> dict[str, object]:
        """Personalize base match scores with learned preferences."""
        state_container: AppContainer = request.app.state.container
        results = state_container.learning_service.get_personalized_recommendations(
            payload.ngo_id, [match.to_domain() for match in payload.matches]
        )
        return {
            "recommendations": [
                {
                    "donation_id": item.donation_id,
                    "final_score": item.final_score,
                    "reasons": list(item.reasons),
                }
                for item in results
            ]
        }

    return app


def _scored_listing_to_dict(scored: ScoredListing) -> dict[str, object]:
    listing = scored.listing
    quality = get_match_quality(scored.match_score)
    return {
        "id": listing.id,
        "food_name": listing.food_name,
        "food_type": listing.food_type,
        "quantity": listing.quantity,
        "donor_id": listing.donor_id,
        "location": listing.location,
        "verified": listing.verified,
        "match_score": scored.match_score,
        "base_score": scored.base_score,
        "breakdown": asdict(scored.breakdown),
        "distance_km": scored.distance_km,
        "expiry_hours": scored.expiry_hours,
        "freshness_percent": scored.freshness_percent,
        "ai_adjusted": scored.ai_adjusted,
        "quality": asdict(quality),
        "distance_label": format_distance(scored.distance_km),
        "expiry_label": format_expiry_time(scored.expiry_hours),
    }


def _summary_to_dict(summary: RecipientLearningSummary) -> dict[str, object]:
    profile = summary.profile
    return {
        "ngo_id": summary.ngo_id,
        "total_accepts": summary.total_accepts,
        "total_rejects": summary.total_rejects,
        "acceptance_rate": summary.acceptance_rate,
        "avg_accepted_distance": summary.avg_accepted_distance,
        "avg_accepted_quantity": summary.avg_accepted_quantity,
        "avg_accepted_freshness": summary.avg_accepted_freshness,
        "preferred_donors": sorted(profile.preferred_donors),
        "avoided_donors": sorted(profile.avoided_donors),
        "distance_boost": profile.distance_boost,
        "quantity_boost": profile.quantity_boost,
        "freshness_boost": profile.freshness_boost,
        "verified_boost": profile.verified_boost,
    }


def _reputation_to_dict(reputation: DonorReputation) -> dict[str, object]:
    return {
        "donor_id": reputation.donor_id,
        "total_claims": reputation.total_claims,
        "acceptance_rate": reputation.acceptance_rate,
        "avg_match_score": reputation.avg_match_score,
        "preferred_by_ngos": list(reputation.preferred_by_ngos),
        "reputation": reputation.reputation,
    }
