"""Listing service - the single entry point for listing reads and writes.

Combines identity injection, ownership checks and the shared query engine on top
of whichever ``ListingBackend`` it was constructed with.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from rentals.models.filters import ListingFilters, PaginatedResult
from rentals.models.listing import (
    CreateListingInput,
    Lister,
    Listing,
    ListingImage,
    ListingStatus,
    UpdateListingInput,
)
from rentals.models.user import Principal, UserRole
from rentals.services.authorization import assert_can_mutate
from rentals.services.image_storage import delete_listing_images, upload_listing_images
from rentals.services.listing_backend import ListingBackend
from rentals.services.listing_query import run_query
from rentals.utils.config import ListingServiceConfig
from rentals.utils.errors import AuthError, NotFoundError, ValidationError
from rentals.utils.ids import generate_listing_id
from rentals.utils.logging import get_structured_logger, log_timing, mask_user_id, timed

logger = get_structured_logger(__name__)

M = TypeVar("M", bound=BaseModel)

_NON_NEGATIVE_FIELDS = (
    ("rent", "Rent"),
    ("bedrooms", "Bedrooms"),
    ("bathrooms", "Bathrooms"),
    ("units_available", "Units available"),
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _coerce(model_cls: Type[M], data: Union[M, dict, None], label: str) -> M:
    """Validate raw input into ``model_cls``, raising our ValidationError."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data or {})
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or label}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError(f"Invalid {label}", errors=errors) from e


def _new_image_ids(resolved: list[ListingImage], previous: list[ListingImage]) -> list[str]:
    known = {image.id for image in previous}
    return [image.id for image in resolved if image.id not in known]


class ListingService:
    """Backend-agnostic listing operations."""

    def __init__(self, backend: ListingBackend, config: Optional[ListingServiceConfig] = None):
        self.backend = backend
        self.config = config or ListingServiceConfig()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _lock_for(self, listing_id: str):
        """Serialize read-modify-write on one listing.

        A lock lives only while some task holds or waits for it, so unknown ids
        leave nothing behind.
        """
        lock = self._locks.get(listing_id)
        if lock is None:
            lock = self._locks[listing_id] = asyncio.Lock()
        self._lock_users[listing_id] = self._lock_users.get(listing_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[listing_id] -= 1
            if not self._lock_users[listing_id]:
                del self._lock_users[listing_id]
                del self._locks[listing_id]

    def _check_values(self, values: dict[str, Any]) -> None:
        if not self.config.strict_validation:
            return

        errors = []
        if "title" in values and not (values["title"] or "").strip():
            errors.append("Title is required")
        for field, label in _NON_NEGATIVE_FIELDS:
            value = values.get(field)
            if value is not None and value < 0:
                errors.append(f"{label} cannot be negative")

        if errors:
            raise ValidationError(errors[0], errors=errors)

    @staticmethod
    def _touch(previous: Optional[datetime]) -> datetime:
        """Next updated_at value; never earlier than the previous one."""
        now = _utc_now()
        if previous is not None and previous > now:
            return previous
        return now

    @staticmethod
    def _require_principal(principal: Optional[Principal]) -> Principal:
        if principal is None:
            raise AuthError(
                "Mutating listing operations require a principal",
                code="UNAUTHENTICATED",
                status_code=401,
                user_message="Please log in to continue.",
            )
        return principal

    async def get_listings(
        self,
        filters: Union[ListingFilters, dict, None] = None,
    ) -> PaginatedResult[Listing]:
        """Active listings matching ``filters``, one page at a time."""
        filters = _coerce(ListingFilters, filters, "filters")
        with log_timing("get_listings", logger=logger):
            candidates = await self.backend.fetch_candidates(filters)
            result = run_query(candidates, filters, self.config.default_page_size)

        logger.info(
            "Listings queried",
            candidate_count=len(candidates),
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            has_search=bool(filters.search_term),
        )
        return result

    @timed("get_listing_by_id", logger=logger)
    async def get_listing_by_id(self, listing_id: str) -> Listing:
        """Fetch one listing, including soft-deleted ones."""
        listing = await self.backend.get(listing_id)
        if listing is None:
            raise NotFoundError(
                f"Listing with ID {listing_id} not found",
                details={"listing_id": listing_id},
            )
        return listing

    async def create_listing(
        self,
        data: Union[CreateListingInput, dict],
        user_id: str,
        user_role: Union[UserRole, str],
    ) -> Listing:
        """Create a listing attributed to the authenticated user.

        Lister identity and role always come from ``user_id`` and ``user_role``;
        anything the payload says about the lister's identity is ignored.
        """
        if not user_id:
            raise ValidationError("An authenticated user ID is required to create a listing")
        try:
            role = UserRole(user_role)
        except ValueError as e:
            raise ValidationError(f"Listings can only be created by agents or owners, not {user_role!r}") from e

        data = _coerce(CreateListingInput, data, "listing")
        self._check_values(data.model_dump(include={"title", "rent", "bedrooms", "bathrooms", "units_available"}))

        listing_id = generate_listing_id()
        now = _utc_now()

        with log_timing("create_listing", logger=logger, listing_id=listing_id):
            images = await upload_listing_images(self.backend.images, listing_id, data.images, uploaded_by=user_id)

            listing = Listing(
                id=listing_id,
                title=data.title,
                description=data.description,
                rent=data.rent,
                location=data.location,
                bedrooms=data.bedrooms,
                bathrooms=data.bathrooms,
                units_available=data.units_available,
                amenities=data.amenities,
                images=images,
                listed_by=Lister(
                    id=user_id,
                    name=data.listed_by_name or "Unknown User",
                    role=role,
                    phone=data.listed_by_phone or "",
                    email=data.listed_by_email or "",
                    company=data.listed_by_company,
                ),
                created_at=now,
                updated_at=now,
                is_active=True,
                status=ListingStatus.AVAILABLE,
            )

            try:
                saved = await self.backend.save(listing)
            except Exception:
                await delete_listing_images(self.backend.images, listing_id, _new_image_ids(images, []))
                raise

        logger.info(
            "Listing created",
            listing_id=saved.id,
            lister_id=mask_user_id(user_id),
            lister_role=role.value,
            image_count=len(saved.images),
        )
        return saved

    async def update_listing(
        self,
        listing_id: str,
        data: Union[UpdateListingInput, dict],
        principal: Principal,
    ) -> Listing:
        """Merge a partial update; id and created_at never change."""
        principal = self._require_principal(principal)
        data = _coerce(UpdateListingInput, data, "listing update")

        changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"images"})
        self._check_values(changes)

        async with self._lock_for(listing_id):
            existing = await self.get_listing_by_id(listing_id)
            assert_can_mutate(existing, principal, action="update")

            record = existing.model_dump()
            record.update(changes)

            images = None
            if data.images is not None:
                images = await upload_listing_images(
                    self.backend.images, listing_id, data.images, uploaded_by=principal.id
                )
                record["images"] = [image.model_dump() for image in images]

            record["id"] = existing.id
            record["created_at"] = existing.created_at
            record["updated_at"] = self._touch(existing.updated_at)
            try:
                updated = _coerce(Listing, record, "listing")
                saved = await self.backend.save(updated)
            except Exception:
                if images is not None:
                    await delete_listing_images(
                        self.backend.images, listing_id, _new_image_ids(images, existing.images)
                    )
                raise

            if images is not None and self.backend.purge_images_on_delete:
                kept = {image.id for image in images}
                dropped = [image.id for image in existing.images if image.id not in kept]
                if dropped:
                    await delete_listing_images(self.backend.images, listing_id, dropped)

        logger.info(
            "Listing updated",
            listing_id=listing_id,
            actor_id=mask_user_id(principal.id),
            actor_role=principal.role.value,
            fields=sorted(changes) + (["images"] if images is not None else []),
        )
        return saved

    async def delete_listing(self, listing_id: str, principal: Principal) -> None:
        """Soft delete: mark inactive. There is no undelete."""
        principal = self._require_principal(principal)

        async with self._lock_for(listing_id):
            existing = await self.get_listing_by_id(listing_id)
            assert_can_mutate(existing, principal, action="delete")

            deleted = existing.model_copy(update={
                "is_active": False,
                "updated_at": self._touch(existing.updated_at),
            })
            await self.backend.save(deleted)

            purged = (0, 0)
            if self.backend.purge_images_on_delete and existing.images:
                purged = await delete_listing_images(
                    self.backend.images, listing_id, [image.id for image in existing.images]
                )

        logger.info(
            "Listing deleted",
            listing_id=listing_id,
            actor_id=mask_user_id(principal.id),
            actor_role=principal.role.value,
            images_deleted=purged[0],
            images_failed=purged[1],
        )

    async def search(
        self,
        query: str,
        filters: Union[ListingFilters, dict, None] = None,
    ) -> PaginatedResult[Listing]:
        """Same as ``get_listings`` with ``search_term=query``."""
        filters = _coerce(ListingFilters, filters, "filters")
        return await self.get_listings(filters.model_copy(update={"search_term": query}))

    @timed("get_listings_by_user", logger=logger)
    async def get_listings_by_user(
        self,
        user_id: str,
        filters: Union[ListingFilters, dict, None] = None,
    ) -> PaginatedResult[Listing]:
        """Active listings of one lister.

        Honours search (title and description only), rent bounds, status, sort and
        pagination. Location, role and unit filters are ignored.
        """
        if not user_id:
            raise ValidationError("A user ID is required")
        filters = _coerce(ListingFilters, filters, "filters")

        candidates = await self.backend.fetch_candidates(filters, owner_id=user_id)
        result = run_query(candidates, filters, self.config.default_page_size, owner_id=user_id)

        logger.info(
            "User listings queried",
            user_id=mask_user_id(user_id),
            total=result.total,
            page=result.page,
        )
        return result
