"""Supabase repository for donation listings."""

from dataclasses import dataclass

from supabase import Client

from donation_matching.domain.listings import Listing, listing_from_record
from donation_matching.services.matching import ListingRepository


@dataclass
class SupabaseListingRepository(ListingRepository):
    """Supabase implementation for listing queries."""

    client: Client
    table_name: str = "food_items"

    def list_available_listings(self) -> list[Listing]:
        """Return available, unclaimed listings ordered by expiry."""
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("status", "available")
            .order("expiry_time", desc=False)
            .execute()
        )
        return [
            listing_from_record(row)
            for row in response.data or []
            if not row.get("claimed")
        ]
