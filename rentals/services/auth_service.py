"""Authentication over Supabase Auth (email and password)."""

from typing import Any, Optional

from rentals.models.user import AuthUser
from rentals.services.supabase_client import SupabaseClient
from rentals.utils.errors import AuthError, RentalsError, UnknownError
from rentals.utils.logging import get_structured_logger, mask_sensitive_data, mask_user_id

logger = get_structured_logger(__name__)

MIN_PASSWORD_LENGTH = 6

# Supabase Auth error codes -> our codes
PROVIDER_ERROR_CODES = {
    "user_already_exists": "EMAIL_ALREADY_REGISTERED",
    "email_exists": "EMAIL_ALREADY_REGISTERED",
    "email_address_invalid": "INVALID_EMAIL",
    "weak_password": "WEAK_PASSWORD",
    "user_not_found": "USER_NOT_FOUND",
    "invalid_credentials": "WRONG_PASSWORD",
    "over_request_rate_limit": "TOO_MANY_REQUESTS",
    "over_email_send_rate_limit": "TOO_MANY_REQUESTS",
}

# Older servers only send a message
PROVIDER_ERROR_MESSAGES = {
    "user already registered": "EMAIL_ALREADY_REGISTERED",
    "invalid login credentials": "WRONG_PASSWORD",
    "unable to validate email address": "INVALID_EMAIL",
    "rate limit": "TOO_MANY_REQUESTS",
}

USER_MESSAGES = {
    "INVALID_INPUT": "Please fill in all required fields.",
    "WEAK_PASSWORD": f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
    "EMAIL_ALREADY_REGISTERED": "This email is already registered. Please login instead.",
    "INVALID_EMAIL": "Please enter a valid email address.",
    "USER_NOT_FOUND": "No account found with this email. Please register first.",
    "WRONG_PASSWORD": "Incorrect password. Please try again.",
    "TOO_MANY_REQUESTS": "Too many failed attempts. Please try again in a few minutes.",
    "NETWORK_ERROR": "Network error. Please check your connection.",
    "UNAUTHENTICATED": "Please log in to continue.",
}

STATUS_CODES = {
    "INVALID_INPUT": 400,
    "WEAK_PASSWORD": 400,
    "INVALID_EMAIL": 400,
    "EMAIL_ALREADY_REGISTERED": 409,
    "TOO_MANY_REQUESTS": 429,
    "NETWORK_ERROR": 503,
}


def auth_error(code: str, message: str, original_error: Optional[BaseException] = None) -> AuthError:
    return AuthError(
        message,
        code=code,
        status_code=STATUS_CODES.get(code, 401),
        user_message=USER_MESSAGES.get(code),
        original_error=original_error,
    )


def classify_provider_error(error: BaseException) -> Optional[str]:
    """Our error code for a provider exception, or None if unrecognised."""
    if isinstance(error, (ConnectionError, TimeoutError)):
        return "NETWORK_ERROR"

    code = getattr(error, "code", None)
    if code in PROVIDER_ERROR_CODES:
        return PROVIDER_ERROR_CODES[code]
    if getattr(error, "status", None) == 429:
        return "TOO_MANY_REQUESTS"

    message = str(getattr(error, "message", None) or error).lower()
    for fragment, mapped in PROVIDER_ERROR_MESSAGES.items():
        if fragment in message:
            return mapped
    return None


def map_provider_error(error: BaseException, operation: str) -> RentalsError:
    code = classify_provider_error(error)
    if code is None:
        return UnknownError(f"{operation} failed: {error}", original_error=error)
    return auth_error(code, f"{operation} failed: {error}", original_error=error)


def to_auth_user(user: Any) -> AuthUser:
    """Map a Supabase user object onto ``AuthUser``."""
    metadata = getattr(user, "user_metadata", None) or {}
    return AuthUser(
        uid=user.id,
        email=getattr(user, "email", None),
        display_name=metadata.get("display_name") or metadata.get("full_name"),
        photo_url=metadata.get("avatar_url"),
        email_verified=getattr(user, "email_confirmed_at", None) is not None,
    )


class AuthService:
    """Email/password authentication and bearer token resolution."""

    @staticmethod
    def _require_credentials(email: str, password: str) -> None:
        if not email or not password:
            raise auth_error("INVALID_INPUT", "Email and password are required")

    async def register_with_email(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
    ) -> AuthUser:
        """Create an auth account. The caller creates the profile row."""
        self._require_credentials(email, password)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise auth_error("WEAK_PASSWORD", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        async with SupabaseClient() as client:
            try:
                credentials: dict[str, Any] = {"email": email, "password": password}
                if display_name:
                    credentials["options"] = {"data": {"display_name": display_name}}
                response = client.auth.sign_up(credentials)
            except Exception as e:
                raise map_provider_error(e, "Registration") from e

        if not response or not response.user:
            raise UnknownError("Registration returned no user")

        user = to_auth_user(response.user)
        logger.info("User registered", user_id=mask_user_id(user.uid), email=mask_sensitive_data(email))
        return user

    async def login_with_email(self, email: str, password: str) -> AuthUser:
        self._require_credentials(email, password)

        async with SupabaseClient() as client:
            try:
                response = client.auth.sign_in_with_password({"email": email, "password": password})
            except Exception as e:
                raise map_provider_error(e, "Login") from e

        if not response or not response.user:
            raise auth_error("WRONG_PASSWORD", "Login returned no user")

        user = to_auth_user(response.user)
        logger.info("User logged in", user_id=mask_user_id(user.uid))
        return user

    async def send_password_reset(self, email: str) -> None:
        if not email:
            raise auth_error("INVALID_INPUT", "Email is required")

        async with SupabaseClient() as client:
            try:
                client.auth.reset_password_for_email(email)
            except Exception as e:
                raise map_provider_error(e, "Password reset") from e

        logger.info("Password reset requested", email=mask_sensitive_data(email))

    async def logout(self) -> None:
        async with SupabaseClient() as client:
            try:
                client.auth.sign_out()
            except Exception as e:
                raise map_provider_error(e, "Logout") from e

    async def get_user_from_token(self, token: Optional[str]) -> AuthUser:
        """Resolve a bearer token (access JWT) to the user it belongs to."""
        if not token:
            raise auth_error("UNAUTHENTICATED", "Missing bearer token")

        async with SupabaseClient() as client:
            try:
                response = client.auth.get_user(token)
            except Exception as e:
                mapped = map_provider_error(e, "Token verification")
                if isinstance(mapped, UnknownError):
                    raise auth_error("UNAUTHENTICATED", str(e), original_error=e) from e
                raise mapped from e

        if not response or not response.user:
            raise auth_error("UNAUTHENTICATED", "Token does not belong to any user")
        return to_auth_user(response.user)
