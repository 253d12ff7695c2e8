"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from donation_matching.adapters.supabase_feedback_repository import (
    SupabaseFeedbackRepository,
)
from donation_matching.adapters.supabase_listing_repository import (
    SupabaseListingRepository,
)
from donation_matching.config import Settings
from donation_matching.services.admin import AdminService
from donation_matching.services.learning import LearningService
from donation_matching.services.matching import MatchingService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    matching_service: MatchingService
    learning_service: LearningService
    admin_service: AdminService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    listing_repository = SupabaseListingRepository(
        supabase_client, table_name=resolved_settings.listings_table
    )
    feedback_repository = SupabaseFeedbackRepository(
        supabase_client, table_name=resolved_settings.feedback_table
    )
    learning_service = LearningService(
        repository=feedback_repository,
        recipient_history_limit=resolved_settings.recipient_feedback_limit,
        donor_history_limit=resolved_settings.donor_feedback_limit,
    )
    matching_service = MatchingService(
        listing_repository=listing_repository,
        learning_service=learning_service,
        debug=resolved_settings.matching_debug,
    )
    admin_service = AdminService(
        feedback_repository=feedback_repository,
        listing_repository=listing_repository,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=resolved_settings,
        matching_service=matching_service,
        learning_service=learning_service,
        admin_service=admin_service,
        close_resources=close_resources,
    )
