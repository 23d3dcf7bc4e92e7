"""Supabase-backed listing store (PostgREST table + Storage bucket)."""

from typing import Optional

from rentals.models.filters import ListingFilters, SortField, SortOrder
from rentals.models.listing import Listing
from rentals.services.image_storage import ImageStorage, SupabaseImageStorage
from rentals.services.listing_backend import ListingBackend
from rentals.services.listing_query import scope_filters_to_owner
from rentals.services.supabase_client import SupabaseClient
from rentals.utils.errors import DatabaseError, RentalsError
from rentals.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


class SupabaseListingBackend(ListingBackend):
    """One row per listing.

    Columns mirror ``Listing`` in snake_case; ``location``, ``listed_by``,
    ``images`` and ``amenities`` are JSON columns. Substring search is not
    expressible in the structured query, so matching rows are pulled and the
    query engine filters text in process.
    """

    purge_images_on_delete = True

    def __init__(
        self,
        table: str = "listings",
        images: Optional[ImageStorage] = None,
        bucket: str = "listing-images",
    ):
        self.table = table
        self.images = images or SupabaseImageStorage(bucket)

    async def get(self, listing_id: str) -> Optional[Listing]:
        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).select("*").eq("id", listing_id).execute()
                if result.data and len(result.data) > 0:
                    return Listing.model_validate(result.data[0])
                return None
            except RentalsError:
                raise
            except Exception as e:
                raise DatabaseError(f"Failed to fetch listing {listing_id}: {e}", original_error=e) from e

    async def save(self, listing: Listing) -> Listing:
        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).upsert(listing.to_record()).execute()
                if result.data and len(result.data) > 0:
                    return Listing.model_validate(result.data[0])
                raise DatabaseError(f"Failed to save listing {listing.id}: no data returned")
            except RentalsError:
                raise
            except Exception as e:
                raise DatabaseError(f"Failed to save listing {listing.id}: {e}", original_error=e) from e

    def _build_query(self, client, filters: ListingFilters, owner_id: Optional[str]):
        query = client.table(self.table).select("*").eq("is_active", True)

        if owner_id is not None:
            query = query.eq("listed_by->>id", owner_id)
            filters = scope_filters_to_owner(filters)

        if filters.state:
            query = query.eq("location->>state", filters.state)
        if filters.city:
            query = query.eq("location->>city", filters.city)
        if filters.min_rent is not None:
            query = query.gte("rent", filters.min_rent)
        if filters.max_rent is not None:
            query = query.lte("rent", filters.max_rent)
        if filters.min_units_available is not None:
            query = query.gte("units_available", filters.min_units_available)
        if filters.status:
            query = query.eq("status", filters.status.value)
        if filters.role:
            query = query.eq("listed_by->>role", filters.role.value)

        sort_by = filters.sort_by or SortField.CREATED_AT
        sort_order = filters.sort_order or SortOrder.DESC
        return query.order(sort_by.attribute, desc=sort_order == SortOrder.DESC)

    async def fetch_candidates(
        self,
        filters: ListingFilters,
        owner_id: Optional[str] = None,
    ) -> list[Listing]:
        async with SupabaseClient() as client:
            try:
                result = self._build_query(client, filters, owner_id).execute()
                rows = result.data or []
                logger.debug(
                    "Fetched listing candidates",
                    table=self.table,
                    candidate_count=len(rows),
                    owner_id=mask_user_id(owner_id),
                )
                return [Listing.model_validate(row) for row in rows]
            except RentalsError:
                raise
            except Exception as e:
                raise DatabaseError(f"Failed to fetch listings: {e}", original_error=e) from e
