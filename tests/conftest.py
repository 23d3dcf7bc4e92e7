"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import MagicMock

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LISTING_BACKEND", "mock")
os.environ.setdefault("LOG_FORMAT", "text")

from rentals.data.sample_listings import sample_listings
from rentals.models.user import Principal, PrincipalRole
from rentals.services.image_storage import InMemoryImageStorage
from rentals.services.listing_backend import InMemoryListingBackend
from rentals.services.listing_service import ListingService
from rentals.services.service_factory import reset_listing_service
from rentals.utils.config import ListingServiceConfig
from tests.utils.factories import create_listing


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builder methods chain back to one query mock."""
    client = MagicMock()
    table = MagicMock()
    query = MagicMock()

    for method in ("select", "eq", "gte", "lte", "order", "upsert", "insert", "update", "delete"):
        getattr(query, method).return_value = query
        getattr(table, method).return_value = query
    query.execute.return_value = MagicMock(data=[])

    client.table.return_value = table
    client._query = query
    return client


@pytest.fixture
def image_storage():
    """Empty in-memory blob store."""
    return InMemoryImageStorage()


@pytest.fixture
def backend(image_storage):
    """Empty in-memory listing backend."""
    return InMemoryListingBackend(images=image_storage)


@pytest.fixture
def config():
    """Strict-validation config for the mock backend."""
    return ListingServiceConfig(backend="mock", default_page_size=20, strict_validation=True)


@pytest.fixture
def service(backend, config):
    """Listing service over an empty in-memory backend."""
    return ListingService(backend, config)


@pytest.fixture
def seeded_service(config):
    """Listing service over the sample listings."""
    return ListingService(InMemoryListingBackend(sample_listings()), config)


@pytest.fixture
def sample_listing():
    """One active listing owned by owner-1."""
    return create_listing(listing_id="listing-1", owner_id="owner-1")


@pytest.fixture
def owner_principal():
    return Principal(id="owner-1", role=PrincipalRole.OWNER, display_name="Folake Adeleke")


@pytest.fixture
def agent_principal():
    return Principal(id="agent-1", role=PrincipalRole.AGENT, display_name="Chioma Okonkwo")


@pytest.fixture
def admin_principal():
    return Principal(id="admin-1", role=PrincipalRole.ADMIN, display_name="Site Admin")


@pytest.fixture
def create_payload():
    """Valid camelCase create payload."""
    return {
        "title": "Bright 2-Bedroom in Yaba",
        "description": "Close to the university, with steady water supply.",
        "rent": 350000,
        "location": {"state": "Lagos", "city": "Yaba", "address": "12 Herbert Macaulay Way"},
        "bedrooms": 2,
        "bathrooms": 1,
        "unitsAvailable": 2,
        "amenities": ["Water Supply", "Parking"],
    }


@pytest.fixture(autouse=True)
def _reset_listing_service():
    """Keep the process-wide listing service from leaking between tests."""
    reset_listing_service()
    yield
    reset_listing_service()
