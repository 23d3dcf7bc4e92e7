"""Text-based ID generation (ULID format)."""

from ulid import ULID


def generate_listing_id() -> str:
    """Generate a listing ID."""
    return str(ULID())


def generate_image_id() -> str:
    """Generate an image ID."""
    return str(ULID())
