"""User profile management over the Supabase ``users`` table."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from rentals.models.user import AuthUser, Principal, PrincipalRole, ProfileRole, UserProfile
from rentals.services.supabase_client import SupabaseClient
from rentals.utils.errors import AuthError, DatabaseError, NotFoundError, ValidationError
from rentals.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

# Never changed through update_user
PROTECTED_FIELDS = {"uid", "email", "created_at"}


def _profile_role(role) -> ProfileRole:
    """Roles a profile may be given. System principals are never stored."""
    try:
        return ProfileRole(getattr(role, "value", role))
    except ValueError as e:
        raise ValidationError(f"Invalid profile role: {getattr(role, 'value', role)!r}") from e


def _profile_from_row(row: dict) -> UserProfile:
    try:
        return UserProfile.model_validate(row)
    except PydanticValidationError as e:
        raise DatabaseError(
            f"Invalid profile row for user {row.get('uid')}",
            details={"errors": [err["msg"] for err in e.errors()]},
            original_error=e,
        ) from e


class UsersService:
    """CRUD for user profiles keyed by the auth user ID."""

    def __init__(self, table: str = "users"):
        self.table = table

    async def create_user(
        self,
        uid: str,
        email: str,
        display_name: Optional[str] = None,
        role: ProfileRole = ProfileRole.OWNER,
    ) -> UserProfile:
        """Create the profile row after a successful registration."""
        role = _profile_role(role)
        now = datetime.now(timezone.utc)
        profile = UserProfile(
            uid=uid,
            email=email,
            display_name=display_name,
            role=role,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).insert(profile.model_dump(mode="json")).execute()
            except Exception as e:
                raise DatabaseError(f"Failed to create user {uid}: {e}", original_error=e) from e

        logger.info("User profile created", user_id=mask_user_id(uid), role=profile.role.value)
        if result.data and len(result.data) > 0:
            return UserProfile.model_validate(result.data[0])
        return profile

    async def get_user(self, uid: str) -> Optional[UserProfile]:
        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).select("*").eq("uid", uid).execute()
            except Exception as e:
                raise DatabaseError(f"Failed to fetch user {uid}: {e}", original_error=e) from e

        if result.data and len(result.data) > 0:
            return _profile_from_row(result.data[0])
        return None

    async def update_user(self, uid: str, updates: dict[str, Any]) -> UserProfile:
        """Apply a partial profile update. uid, email and created_at are ignored."""
        existing = await self.get_user(uid)
        if existing is None:
            raise NotFoundError(
                f"User not found: {uid}",
                code="USER_NOT_FOUND",
                user_message="User not found.",
                details={"uid": uid},
            )

        changes = {to_snake(key): value for key, value in updates.items()}
        changes = {key: value for key, value in changes.items() if key not in PROTECTED_FIELDS}
        unknown = sorted(set(changes) - set(UserProfile.model_fields))
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(unknown)}")

        try:
            merged = UserProfile.model_validate({
                **existing.model_dump(),
                **changes,
                "updated_at": datetime.now(timezone.utc),
            })
        except PydanticValidationError as e:
            raise ValidationError("Invalid profile update", errors=[err["msg"] for err in e.errors()]) from e

        payload = merged.model_dump(mode="json", include=set(changes) | {"updated_at"})

        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).update(payload).eq("uid", uid).execute()
            except Exception as e:
                raise DatabaseError(f"Failed to update user {uid}: {e}", original_error=e) from e

        logger.info("User profile updated", user_id=mask_user_id(uid), fields=sorted(changes))
        if result.data and len(result.data) > 0:
            return UserProfile.model_validate(result.data[0])
        return merged

    async def update_user_role(self, uid: str, role: ProfileRole) -> UserProfile:
        return await self.update_user(uid, {"role": _profile_role(role)})

    async def deactivate_user(self, uid: str) -> UserProfile:
        """Mark the profile inactive instead of deleting it."""
        return await self.update_user(uid, {"is_active": False})

    async def reactivate_user(self, uid: str) -> UserProfile:
        return await self.update_user(uid, {"is_active": True})

    async def delete_user_data(self, uid: str) -> None:
        """Remove the profile row. The auth account itself is left alone."""
        async with SupabaseClient() as client:
            try:
                client.table(self.table).delete().eq("uid", uid).execute()
            except Exception as e:
                raise DatabaseError(f"Failed to delete user {uid}: {e}", original_error=e) from e

        logger.info("User profile deleted", user_id=mask_user_id(uid))

    async def resolve_principal(self, auth_user: AuthUser) -> Principal:
        """Build the acting principal for an authenticated user.

        Users without a profile row act as owners. Deactivated profiles may not act.
        """
        profile = await self.get_user(auth_user.uid)
        if profile is None:
            logger.debug("No profile for user, defaulting to owner", user_id=mask_user_id(auth_user.uid))
            return Principal(
                id=auth_user.uid,
                role=PrincipalRole.OWNER,
                display_name=auth_user.display_name,
                email=auth_user.email,
            )

        if not profile.is_active:
            raise AuthError(
                f"User {auth_user.uid} is deactivated",
                code="ACCOUNT_DISABLED",
                status_code=403,
                user_message="This account has been deactivated.",
            )

        return Principal(
            id=profile.uid,
            role=PrincipalRole(profile.role.value),
            display_name=profile.display_name or auth_user.display_name,
            email=profile.email,
            phone=profile.phone,
            company=profile.company,
        )
