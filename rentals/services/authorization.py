"""Ownership checks for mutating listing operations."""

from rentals.models.listing import Listing
from rentals.models.user import Principal
from rentals.utils.errors import ForbiddenError
from rentals.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


def can_mutate(listing: Listing, principal: Principal) -> bool:
    """True for the recorded lister, admins and explicit system principals."""
    return (
        listing.listed_by.id == principal.id
        or principal.is_admin
        or principal.is_system
    )


def assert_can_mutate(listing: Listing, principal: Principal, action: str = "modify") -> None:
    """Raise ForbiddenError unless ``principal`` may mutate ``listing``."""
    if principal.is_system:
        logger.warning(
            "System principal bypassing ownership check",
            listing_id=listing.id,
            action=action,
            reason=principal.reason,
            owner_id=mask_user_id(listing.listed_by.id),
        )
        return

    if can_mutate(listing, principal):
        return

    error = ForbiddenError(
        listing_id=listing.id,
        owner_id=listing.listed_by.id,
        actor_id=principal.id,
        actor_role=principal.role.value,
    )
    logger.warning(
        "Listing mutation denied",
        action=action,
        listing_id=listing.id,
        owner_id=mask_user_id(listing.listed_by.id),
        actor_id=mask_user_id(principal.id),
        actor_role=principal.role.value,
    )
    raise error
