"""Process-wide listing service selection.

One ``ListingService`` per process, built from configuration the first time
``initialize_listing_service`` runs.
"""

from typing import Optional

from rentals.data.sample_listings import sample_listings
from rentals.services.image_storage import SupabaseImageStorage
from rentals.services.listing_backend import InMemoryListingBackend, ListingBackend
from rentals.services.listing_service import ListingService
from rentals.services.supabase_backend import SupabaseListingBackend
from rentals.utils.config import BackendKind, ListingServiceConfig
from rentals.utils.errors import RentalsError
from rentals.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# Global service instance (singleton pattern)
_service: Optional[ListingService] = None


def build_backend(config: ListingServiceConfig) -> ListingBackend:
    """Construct the backend named by ``config.backend``."""
    if config.backend == BackendKind.REMOTE:
        return SupabaseListingBackend(
            table=config.listings_table,
            images=SupabaseImageStorage(config.images_bucket),
        )

    listings = sample_listings() if config.seed_mock_data else []
    return InMemoryListingBackend(listings)


def initialize_listing_service(config: Optional[ListingServiceConfig] = None) -> ListingService:
    """Return the process service, creating it on first call.

    Later calls return the existing instance and ignore ``config``.
    """
    global _service

    if _service is None:
        config = config or ListingServiceConfig.from_env()
        _service = ListingService(build_backend(config), config)
        logger.info(
            "Listing service initialized",
            backend=config.backend.value,
            default_page_size=config.default_page_size,
            strict_validation=config.strict_validation,
        )

    return _service


def get_listing_service() -> ListingService:
    """Return the initialized service or raise if there is none yet."""
    if _service is None:
        raise RentalsError(
            "Listing service not initialized. Call initialize_listing_service() first.",
            code="NOT_INITIALIZED",
        )
    return _service


def reset_listing_service() -> None:
    """Forget the current service (tests only)."""
    global _service
    _service = None
