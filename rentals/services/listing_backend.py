"""Listing backend contract and the in-memory implementation."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from rentals.models.filters import ListingFilters
from rentals.models.listing import Listing
from rentals.services.image_storage import ImageStorage, InMemoryImageStorage


class ListingBackend(ABC):
    """Storage for listings and their images.

    ``fetch_candidates`` may narrow the candidate set with the structured filters it
    can express natively; the query engine re-applies every filter anyway.
    """

    images: ImageStorage
    # Whether soft deletes also remove the listing's image files
    purge_images_on_delete: bool = False

    @abstractmethod
    async def get(self, listing_id: str) -> Optional[Listing]:
        """Return the listing regardless of its active flag, or None."""

    @abstractmethod
    async def save(self, listing: Listing) -> Listing:
        """Insert or replace the listing."""

    @abstractmethod
    async def fetch_candidates(
        self,
        filters: ListingFilters,
        owner_id: Optional[str] = None,
    ) -> list[Listing]:
        """Return the active listings a query should consider."""


class InMemoryListingBackend(ListingBackend):
    """Dict-backed store owned by one service instance.

    Stored objects are copied in and out, so callers never share mutable state
    with the store.
    """

    purge_images_on_delete = False

    def __init__(
        self,
        listings: Optional[Iterable[Listing]] = None,
        images: Optional[ImageStorage] = None,
    ):
        self._listings: dict[str, Listing] = {}
        self.images = images or InMemoryImageStorage()
        for listing in listings or []:
            self._listings[listing.id] = listing.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._listings)

    async def get(self, listing_id: str) -> Optional[Listing]:
        listing = self._listings.get(listing_id)
        return listing.model_copy(deep=True) if listing else None

    async def save(self, listing: Listing) -> Listing:
        self._listings[listing.id] = listing.model_copy(deep=True)
        return listing

    async def fetch_candidates(
        self,
        filters: ListingFilters,
        owner_id: Optional[str] = None,
    ) -> list[Listing]:
        # full scan, insertion order
        return [
            listing.model_copy(deep=True)
            for listing in self._listings.values()
            if listing.is_active and (owner_id is None or listing.listed_by.id == owner_id)
        ]
