"""Tests for Listing models."""

import pytest
from datetime import datetime, timezone
from pydantic import TypeAdapter, ValidationError

from rentals.models.listing import (
    CreateListingInput,
    ExistingImage,
    ImageInput,
    Listing,
    ListingImage,
    ListingStatus,
    NewImageFile,
    UpdateListingInput,
)
from rentals.models.user import UserRole
from tests.utils.factories import create_listing_data


@pytest.mark.unit
def test_listing_valid():
    """Test valid listing creation from a snake_case record."""
    listing = Listing.model_validate(create_listing_data(listing_id="abc", owner_id="owner-1"))

    assert listing.id == "abc"
    assert listing.listed_by.id == "owner-1"
    assert listing.listed_by.role == UserRole.OWNER
    assert listing.is_active is True
    assert listing.status == ListingStatus.AVAILABLE


@pytest.mark.unit
def test_listing_accepts_camel_case():
    """Test that camelCase keys populate the same fields."""
    listing = Listing.model_validate({
        "id": "1",
        "title": "Cozy Studio in Yaba",
        "rent": 120000,
        "location": {"state": "Lagos", "city": "Yaba", "address": "56 Awolowo Road"},
        "unitsAvailable": 4,
        "listedBy": {"id": "owner-2", "name": "Tunde Alabi", "role": "owner"},
        "createdAt": "2026-01-17T15:50:00Z",
        "isActive": True,
    })

    assert listing.units_available == 4
    assert listing.listed_by.name == "Tunde Alabi"
    assert listing.created_at == datetime(2026, 1, 17, 15, 50, tzinfo=timezone.utc)


@pytest.mark.unit
def test_listing_updated_at_defaults_to_created_at():
    """Test that a record without updated_at gets created_at."""
    data = create_listing_data()
    data.pop("updated_at")

    listing = Listing.model_validate(data)

    assert listing.updated_at == listing.created_at


@pytest.mark.unit
def test_listing_missing_required_fields():
    """Test that required fields are enforced."""
    with pytest.raises(ValidationError):
        Listing(id="1", title="No rent or location")


@pytest.mark.unit
def test_listing_invalid_status():
    """Test that unknown statuses are rejected."""
    with pytest.raises(ValidationError):
        Listing.model_validate(create_listing_data(status="sold"))


@pytest.mark.unit
def test_lister_defaults():
    """Test lister defaults for a record with only id and role."""
    data = create_listing_data()
    data["listed_by"] = {"id": "agent-9", "role": "agent"}

    listing = Listing.model_validate(data)

    assert listing.listed_by.name == "Unknown User"
    assert listing.listed_by.phone == ""
    assert listing.listed_by.company is None


@pytest.mark.unit
def test_to_record_is_json_safe():
    """Test that to_record produces snake_case JSON values."""
    record = Listing.model_validate(create_listing_data(listing_id="abc")).to_record()

    assert record["id"] == "abc"
    assert isinstance(record["created_at"], str)
    assert record["status"] == "available"
    assert "listed_by" in record
    assert "listedBy" not in record


@pytest.mark.unit
def test_image_input_dispatches_on_kind():
    """Test that the image union picks the variant named by kind."""
    adapter = TypeAdapter(ImageInput)

    new = adapter.validate_python({
        "kind": "new",
        "filename": "front.png",
        "content": b"\x89PNG",
        "contentType": "image/png",
    })
    existing = adapter.validate_python({"kind": "existing", "id": "img-1", "url": "https://cdn/img-1"})

    assert isinstance(new, NewImageFile)
    assert new.size == 4
    assert isinstance(existing, ExistingImage)
    assert existing.id == "img-1"


@pytest.mark.unit
def test_image_input_requires_kind():
    """Test that image inputs without a kind are rejected."""
    with pytest.raises(ValidationError):
        TypeAdapter(ImageInput).validate_python({"id": "img-1", "url": "https://cdn/img-1"})


@pytest.mark.unit
def test_existing_image_from_listing_image():
    """Test conversion of a stored image into a keep-reference."""
    stored = ListingImage(id="img-1", url="https://cdn/img-1", alt_text="Front", order=3)

    ref = ExistingImage.from_listing_image(stored)

    assert ref.kind == "existing"
    assert ref.id == "img-1"
    assert ref.alt_text == "Front"


@pytest.mark.unit
def test_create_input_ignores_listed_by():
    """Test that client-supplied lister identity is dropped."""
    data = CreateListingInput.model_validate({
        "title": "X",
        "rent": 100,
        "location": {"state": "Lagos", "city": "Yaba", "address": "1 Road"},
        "listedBy": {"id": "attacker", "role": "agent"},
    })

    assert not hasattr(data, "listed_by")
    assert "listedBy" not in data.model_dump(by_alias=True)


@pytest.mark.unit
def test_update_input_tracks_set_fields():
    """Test that only explicitly provided fields count as set."""
    data = UpdateListingInput.model_validate({"rent": 400000, "status": "rented"})

    assert data.model_dump(exclude_unset=True) == {"rent": 400000, "status": ListingStatus.RENTED}


@pytest.mark.unit
def test_update_input_has_no_active_flag():
    """Test that updates cannot carry the soft-delete flag."""
    data = UpdateListingInput.model_validate({"isActive": True})

    assert data.model_dump(exclude_unset=True) == {}
