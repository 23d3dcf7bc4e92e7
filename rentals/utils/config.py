"""Listing service configuration loaded from environment variables."""

import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from rentals.utils.errors import ValidationError


class BackendKind(str, Enum):
    """Which listing backend the process uses."""
    MOCK = "mock"
    REMOTE = "remote-store"

    @classmethod
    def _missing_(cls, value):
        # the remote store is Supabase
        if isinstance(value, str) and value.lower() == "supabase":
            return cls.REMOTE
        return None


def _env_flag(env, name: str, default: str) -> bool:
    return str(env.get(name, default)).strip().lower() in ("1", "true", "yes", "on")


class ListingServiceConfig(BaseModel):
    """Settings shared by every listing backend."""
    backend: BackendKind = Field(default=BackendKind.MOCK, description="mock or remote-store")
    default_page_size: int = Field(default=20, ge=1, description="Page size when filters omit it")
    strict_validation: bool = Field(
        default=True,
        description="Reject negative numbers and empty titles on create/update"
    )
    listings_table: str = Field(default="listings", min_length=1)
    users_table: str = Field(default="users", min_length=1)
    images_bucket: str = Field(default="listing-images", min_length=1)
    seed_mock_data: bool = Field(default=True, description="Load the sample listings into the mock backend")

    @field_validator("backend", mode="before")
    @classmethod
    def _coerce_backend(cls, value):
        if isinstance(value, str):
            return BackendKind(value.strip().lower())
        return value

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ListingServiceConfig":
        """Build config from LISTING_* environment variables."""
        env = os.environ if environ is None else environ
        values = {
            "backend": env.get("LISTING_BACKEND", BackendKind.MOCK.value).strip().lower(),
            "default_page_size": env.get("LISTING_DEFAULT_PAGE_SIZE", "20"),
            "listings_table": env.get("LISTINGS_TABLE", "listings"),
            "users_table": env.get("USERS_TABLE", "users"),
            "images_bucket": env.get("LISTING_IMAGES_BUCKET", "listing-images"),
            "strict_validation": _env_flag(env, "LISTING_STRICT_VALIDATION", "true"),
            "seed_mock_data": _env_flag(env, "LISTING_SEED_MOCK_DATA", "true"),
        }

        try:
            return cls.model_validate(values)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid listing service configuration",
                errors=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
            ) from e
