"""Backend-independent filter, sort and pagination of listings.

Backends only supply the candidate set; every predicate, the sort and the page
slice are always applied here so that all backends return identical pages for
identical data.
"""

import math
from typing import Iterable, Optional

from rentals.models.filters import ListingFilters, PaginatedResult, SortField, SortOrder
from rentals.models.listing import Listing

DEFAULT_PAGE_SIZE = 20

# Fields scanned by free-text search
SEARCH_FIELDS = ("title", "description", "city", "state", "lister_name")
OWNER_SEARCH_FIELDS = ("title", "description")

# Filters a user-scoped query does not honour
OWNER_SCOPE_IGNORED = {"state", "city", "role", "min_units_available"}


def _search_values(listing: Listing) -> dict[str, str]:
    return {
        "title": listing.title,
        "description": listing.description,
        "city": listing.location.city,
        "state": listing.location.state,
        "lister_name": listing.listed_by.name,
    }


def matches_search(listing: Listing, term: Optional[str], fields: Iterable[str] = SEARCH_FIELDS) -> bool:
    """Case-insensitive substring match against any of ``fields``."""
    if not term:
        return True
    needle = term.lower()
    values = _search_values(listing)
    return any(needle in (values[field] or "").lower() for field in fields)


def matches_filters(listing: Listing, filters: ListingFilters) -> bool:
    """Structured predicates (everything except free-text search), AND-ed."""
    if filters.state and listing.location.state != filters.state:
        return False
    if filters.city and listing.location.city != filters.city:
        return False
    if filters.min_rent is not None and listing.rent < filters.min_rent:
        return False
    if filters.max_rent is not None and listing.rent > filters.max_rent:
        return False
    if filters.min_units_available is not None and listing.units_available < filters.min_units_available:
        return False
    if filters.role and listing.listed_by.role != filters.role:
        return False
    if filters.status and listing.status != filters.status:
        return False
    return True


def sort_listings(
    listings: list[Listing],
    sort_by: Optional[SortField] = None,
    sort_order: Optional[SortOrder] = None,
) -> list[Listing]:
    """Stable sort; defaults to newest first. Ties keep their incoming order."""
    field = sort_by or SortField.CREATED_AT
    order = sort_order or SortOrder.DESC
    return sorted(
        listings,
        key=lambda listing: getattr(listing, field.attribute),
        reverse=order == SortOrder.DESC,
    )


def paginate(
    items: list[Listing],
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> PaginatedResult[Listing]:
    """Slice one page out of the already filtered and sorted items."""
    size = page_size or default_page_size
    current = max(1, page or 1)
    start = (current - 1) * size

    total = len(items)
    total_pages = math.ceil(total / size)
    has_more = current < total_pages

    return PaginatedResult[Listing](
        items=items[start:start + size],
        total=total,
        page=current,
        page_size=size,
        total_pages=total_pages,
        has_more=has_more,
        next_cursor=str(current + 1) if has_more else None,
    )


def scope_filters_to_owner(filters: ListingFilters) -> ListingFilters:
    """Drop the filters a user-scoped query ignores."""
    return filters.model_copy(update={field: None for field in OWNER_SCOPE_IGNORED})


def run_query(
    candidates: Iterable[Listing],
    filters: Optional[ListingFilters] = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    owner_id: Optional[str] = None,
) -> PaginatedResult[Listing]:
    """Filter, sort and paginate a candidate set.

    Inactive listings never appear. When ``owner_id`` is given only that lister's
    listings are returned and the reduced user-scope filter set applies.
    """
    filters = filters or ListingFilters()
    search_fields = SEARCH_FIELDS
    if owner_id is not None:
        filters = scope_filters_to_owner(filters)
        search_fields = OWNER_SEARCH_FIELDS

    matched = [
        listing for listing in candidates
        if listing.is_active
        and (owner_id is None or listing.listed_by.id == owner_id)
        and matches_filters(listing, filters)
        and matches_search(listing, filters.search_term, search_fields)
    ]

    ordered = sort_listings(matched, filters.sort_by, filters.sort_order)
    return paginate(ordered, filters.page, filters.page_size, default_page_size)
