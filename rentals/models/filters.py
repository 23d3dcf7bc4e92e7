"""Query filters and paginated results."""

from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from rentals.models.listing import ListingStatus
from rentals.models.user import UserRole

T = TypeVar("T")


class SortField(str, Enum):
    """Sortable listing fields."""
    RENT = "rent"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    UNITS_AVAILABLE = "unitsAvailable"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.attribute == value:
                    return member
        return None

    @property
    def attribute(self) -> str:
        """Listing attribute the field sorts on."""
        return {
            "rent": "rent",
            "createdAt": "created_at",
            "updatedAt": "updated_at",
            "unitsAvailable": "units_available",
        }[self.value]


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ListingFilters(BaseModel):
    """Query specification. Every field is optional; absence means no constraint."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    search_term: Optional[str] = Field(None, description="Case-insensitive substring")
    state: Optional[str] = None
    city: Optional[str] = None
    min_rent: Optional[int] = Field(None, ge=0)
    max_rent: Optional[int] = Field(None, ge=0)
    min_units_available: Optional[int] = Field(None, ge=0)
    role: Optional[UserRole] = None
    status: Optional[ListingStatus] = None
    sort_by: Optional[SortField] = None
    sort_order: Optional[SortOrder] = None
    page: Optional[int] = Field(None, description="1-indexed; values below 1 are clamped")
    page_size: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def _check_rent_bounds(self) -> "ListingFilters":
        if self.min_rent is not None and self.max_rent is not None and self.min_rent > self.max_rent:
            raise ValueError("minRent cannot be greater than maxRent")
        return self


class PaginatedResult(BaseModel, Generic[T]):
    """One page of results plus paging metadata."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: list[T]
    total: int = Field(..., description="Matches before pagination")
    page: int
    page_size: int
    total_pages: int
    has_more: bool
    next_cursor: Optional[str] = Field(None, description="Next page number, or None on the last page")
