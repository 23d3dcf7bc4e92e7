"""Listing models."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from rentals.models.user import UserRole


_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ListingStatus(str, Enum):
    """Availability of a listing."""
    AVAILABLE = "available"
    PENDING = "pending"
    RENTED = "rented"


class Coordinates(BaseModel):
    model_config = _camel

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Location(BaseModel):
    """Where the apartment is."""
    model_config = _camel

    state: str = Field(..., description="State, e.g. Lagos or FCT")
    city: str = Field(..., description="City or district, e.g. Ikoyi")
    address: str = Field(..., description="Street address")
    coordinates: Optional[Coordinates] = None


class Lister(BaseModel):
    """Agent or owner a listing is attributed to (embedded copy)."""
    model_config = _camel

    id: str = Field(..., description="Authenticated user ID of the lister")
    name: str = Field(default="Unknown User")
    role: UserRole
    phone: str = ""
    email: str = ""
    company: Optional[str] = Field(None, description="Only meaningful for agents")


class ListingImage(BaseModel):
    """Stored image of a listing."""
    model_config = _camel

    id: str
    url: str
    alt_text: str = ""
    order: int = Field(default=0, description="Render position in the gallery")
    thumbnail_url: Optional[str] = None


class NewImageFile(BaseModel):
    """Image file that still has to be uploaded."""
    model_config = _camel

    kind: Literal["new"] = "new"
    filename: str = Field(..., min_length=1)
    content: bytes = Field(..., repr=False)
    content_type: str = Field(..., description="MIME type, e.g. image/jpeg")
    alt_text: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


class ExistingImage(BaseModel):
    """Reference to an image that is already in the blob store."""
    model_config = _camel

    kind: Literal["existing"] = "existing"
    id: str
    url: str
    alt_text: str = ""
    thumbnail_url: Optional[str] = None

    @classmethod
    def from_listing_image(cls, image: ListingImage) -> "ExistingImage":
        return cls(id=image.id, url=image.url, alt_text=image.alt_text, thumbnail_url=image.thumbnail_url)


ImageInput = Annotated[Union[NewImageFile, ExistingImage], Field(discriminator="kind")]


class Listing(BaseModel):
    """Rental apartment listing."""
    model_config = _camel

    id: str = Field(..., description="Listing ID (ULID)")
    title: str
    description: str = ""
    rent: int = Field(..., description="Monthly rent in the smallest currency unit")
    location: Location
    bedrooms: int = 0
    bathrooms: int = 0
    units_available: int = 0
    amenities: list[str] = Field(default_factory=list)
    images: list[ListingImage] = Field(default_factory=list)
    listed_by: Lister
    created_at: datetime
    updated_at: Optional[datetime] = None
    is_active: bool = True
    status: ListingStatus = ListingStatus.AVAILABLE

    @model_validator(mode="after")
    def _default_updated_at(self) -> "Listing":
        if self.updated_at is None:
            self.updated_at = self.created_at
        return self

    def to_record(self) -> dict:
        """Snake-case JSON-safe dict for the document store."""
        return self.model_dump(mode="json")


class CreateListingInput(BaseModel):
    """Client payload for a new listing.

    Lister identity and role come from authentication; a ``listedBy`` key in the
    payload is ignored.
    """
    model_config = _camel

    title: str
    description: str = ""
    rent: int
    location: Location
    bedrooms: int = 0
    bathrooms: int = 0
    units_available: int = 0
    amenities: list[str] = Field(default_factory=list)
    images: list[ImageInput] = Field(default_factory=list)

    listed_by_name: Optional[str] = None
    listed_by_phone: Optional[str] = None
    listed_by_email: Optional[str] = None
    listed_by_company: Optional[str] = None


class UpdateListingInput(BaseModel):
    """Partial update. Identity, timestamps, lister and the active flag are not accepted."""
    model_config = _camel

    title: Optional[str] = None
    description: Optional[str] = None
    rent: Optional[int] = None
    location: Optional[Location] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    units_available: Optional[int] = None
    amenities: Optional[list[str]] = None
    images: Optional[list[ImageInput]] = None
    status: Optional[ListingStatus] = None
