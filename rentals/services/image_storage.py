"""Listing image storage: validation, upload with rollback, best-effort deletion."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from rentals.models.listing import ImageInput, ListingImage, NewImageFile
from rentals.services.supabase_client import SupabaseClient
from rentals.utils.errors import StorageError, ValidationError
from rentals.utils.ids import generate_image_id
from rentals.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
MAX_IMAGE_SIZE_BYTES = 5 * 1024 * 1024
MAX_IMAGES_PER_LISTING = 20

_MIME_NAMES = {"image/jpeg": "JPEG", "image/png": "PNG", "image/webp": "WebP"}


def image_path(listing_id: str, image_id: str) -> str:
    """Blob path of one listing image."""
    return f"listings/{listing_id}/{image_id}"


class ImageStorage(ABC):
    """Blob store addressed by ``listings/{listing_id}/{image_id}`` paths."""

    @abstractmethod
    async def upload(self, path: str, content: bytes, content_type: str, metadata: Optional[dict] = None) -> None:
        ...

    @abstractmethod
    async def get_url(self, path: str) -> str:
        ...

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete an object. Deleting a missing object is not an error."""
        ...


class InMemoryImageStorage(ImageStorage):
    """Process-local blob store."""

    def __init__(self, base_url: str = "memory://"):
        self.base_url = base_url
        self.objects: dict[str, dict] = {}

    async def upload(self, path: str, content: bytes, content_type: str, metadata: Optional[dict] = None) -> None:
        self.objects[path] = {
            "content": content,
            "content_type": content_type,
            "metadata": metadata or {},
        }

    async def get_url(self, path: str) -> str:
        if path not in self.objects:
            raise StorageError(f"Object not found: {path}")
        return f"{self.base_url}{path}"

    async def delete(self, path: str) -> None:
        self.objects.pop(path, None)

    def exists(self, path: str) -> bool:
        return path in self.objects


class SupabaseImageStorage(ImageStorage):
    """Supabase Storage bucket with public URLs."""

    def __init__(self, bucket: str = "listing-images"):
        self.bucket = bucket

    async def upload(self, path: str, content: bytes, content_type: str, metadata: Optional[dict] = None) -> None:
        async with SupabaseClient() as client:
            try:
                client.storage.from_(self.bucket).upload(
                    path,
                    content,
                    {"content-type": content_type, "upsert": "false"},
                )
            except Exception as e:
                raise StorageError(f"Failed to upload {path}: {e}", original_error=e) from e

    async def get_url(self, path: str) -> str:
        async with SupabaseClient() as client:
            try:
                return client.storage.from_(self.bucket).get_public_url(path)
            except Exception as e:
                raise StorageError(f"Failed to get URL for {path}: {e}", original_error=e) from e

    async def delete(self, path: str) -> None:
        async with SupabaseClient() as client:
            try:
                # remove() reports missing objects as an empty result, not an error
                client.storage.from_(self.bucket).remove([path])
            except Exception as e:
                raise StorageError(f"Failed to delete {path}: {e}", original_error=e) from e


def format_file_size(size: int) -> str:
    """Human-readable size, e.g. ``5.0 MB``."""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{value:.1f} {units[index]}"


def image_upload_help_text() -> str:
    formats = ", ".join(_MIME_NAMES.get(t, t) for t in ALLOWED_IMAGE_TYPES)
    return (
        f"Supported formats: {formats}. "
        f"Max size: {format_file_size(MAX_IMAGE_SIZE_BYTES)}. "
        f"Up to {MAX_IMAGES_PER_LISTING} images."
    )


def check_image_file(image: NewImageFile) -> Optional[str]:
    """Return an error message, or None if the file is acceptable."""
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        return "Only JPEG, PNG, and WebP images are allowed"
    if image.size > MAX_IMAGE_SIZE_BYTES:
        return f"Image size must be less than {format_file_size(MAX_IMAGE_SIZE_BYTES)}"
    return None


def validate_images(images: list[ImageInput]) -> None:
    """Raise ValidationError listing each distinct problem with ``images``."""
    errors: list[str] = []
    if len(images) > MAX_IMAGES_PER_LISTING:
        errors.append(f"Too many images. Maximum {MAX_IMAGES_PER_LISTING} images allowed per listing.")

    for image in images:
        if image.kind != "new":
            continue
        message = check_image_file(image)
        if message and message not in errors:
            errors.append(message)

    if errors:
        raise ValidationError(errors[0], errors=errors)


async def _cleanup_uploads(storage: ImageStorage, paths: list[str]) -> None:
    for path in paths:
        try:
            await storage.delete(path)
            logger.info("Cleaned up uploaded image", path=path)
        except Exception as e:
            logger.warning("Failed to clean up uploaded image", path=path, error=str(e))


async def upload_listing_images(
    storage: ImageStorage,
    listing_id: str,
    images: list[ImageInput],
    uploaded_by: str,
) -> list[ListingImage]:
    """Resolve image inputs into stored ``ListingImage`` records.

    Existing references are kept as-is; new files are uploaded. Either every new
    file of this call ends up stored, or none of them remain (uploaded files are
    deleted before the error propagates).
    """
    validate_images(images)

    uploaded: list[str] = []
    resolved: list[ListingImage] = []
    try:
        for order, image in enumerate(images):
            if image.kind == "existing":
                resolved.append(ListingImage(
                    id=image.id,
                    url=image.url,
                    alt_text=image.alt_text,
                    order=order,
                    thumbnail_url=image.thumbnail_url,
                ))
                continue

            image_id = generate_image_id()
            path = image_path(listing_id, image_id)
            # tracked before the call so a partial upload is also cleaned up
            uploaded.append(path)
            await storage.upload(
                path,
                image.content,
                image.content_type,
                metadata={
                    "uploadedBy": uploaded_by,
                    "uploadedAt": datetime.now(timezone.utc).isoformat(),
                    "originalFileName": image.filename,
                    "listingId": listing_id,
                },
            )
            url = await storage.get_url(path)
            resolved.append(ListingImage(
                id=image_id,
                url=url,
                alt_text=image.alt_text or image.filename,
                order=order,
                thumbnail_url=url,
            ))
    except Exception as e:
        logger.error(
            "Image upload failed, cleaning up",
            listing_id=listing_id,
            uploaded_by=mask_user_id(uploaded_by),
            uploaded_count=len(uploaded),
            error=str(e),
        )
        await _cleanup_uploads(storage, uploaded)
        if isinstance(e, StorageError):
            raise
        raise StorageError(f"Failed to upload image: {e}", original_error=e) from e

    return resolved


async def delete_listing_images(
    storage: ImageStorage,
    listing_id: str,
    image_ids: list[str],
) -> tuple[int, int]:
    """Delete images one by one. Returns (successful, failed); never raises."""
    successful = 0
    failed = 0
    for image_id in image_ids:
        try:
            await storage.delete(image_path(listing_id, image_id))
            successful += 1
        except Exception as e:
            failed += 1
            logger.warning(
                "Failed to delete listing image",
                listing_id=listing_id,
                image_id=image_id,
                error=str(e),
            )
    return successful, failed
