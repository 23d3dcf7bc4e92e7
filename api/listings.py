"""Listings endpoint for Vercel.

GET     /api/listings                 list (camelCase filter params, ``q`` to search, ``userId`` to scope)
GET     /api/listings?id=<id>         one listing
POST    /api/listings                 create (bearer token required)
PATCH   /api/listings?id=<id>         partial update (bearer token required)
DELETE  /api/listings?id=<id>         soft delete (bearer token required)
"""

from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlparse
import asyncio
import base64
import binascii
import json

from rentals.utils.errors import RentalsError, UnknownError, ValidationError
from rentals.utils.logging import correlation_context, get_structured_logger, mask_user_id, setup_logging

setup_logging()
_logger = get_structured_logger(__name__)

# Query parameters that are not ListingFilters fields
_RESERVED_PARAMS = {"id", "q", "userId"}


# One loop per process; per-listing locks in the service are bound to it
_loop: asyncio.AbstractEventLoop | None = None


def _get_loop() -> asyncio.AbstractEventLoop:
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


def _get_service():
    from rentals.services.service_factory import initialize_listing_service
    return initialize_listing_service()


def _query_params(path: str) -> dict[str, str]:
    """First value of each query string parameter."""
    return {key: values[0] for key, values in parse_qs(urlparse(path).query).items() if values}


def decode_image_payloads(payload: dict) -> dict:
    """Decode base64 ``content`` of new image files in a JSON payload."""
    images = payload.get("images")
    if not isinstance(images, list):
        return payload

    decoded = []
    for image in images:
        if isinstance(image, dict) and image.get("kind") == "new" and isinstance(image.get("content"), str):
            try:
                content = base64.b64decode(image["content"], validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValidationError(f"Image {image.get('filename', '')!r} is not valid base64") from e
            image = {**image, "content": content}
        decoded.append(image)
    return {**payload, "images": decoded}


def _listing_json(listing) -> dict:
    return listing.model_dump(mode="json", by_alias=True)


async def _resolve_principal(authorization: str | None, users_table: str):
    from rentals.services.auth_service import AuthService
    from rentals.services.users_service import UsersService

    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()

    auth_user = await AuthService().get_user_from_token(token)
    return await UsersService(users_table).resolve_principal(auth_user)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for listings."""

    def _send_json(self, status: int, body: dict, correlation_id: str | None = None):
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        if correlation_id:
            self.send_header('X-Request-ID', correlation_id)
        self.end_headers()
        self.wfile.write(json.dumps(body).encode('utf-8'))

    def _read_json(self) -> dict:
        content_length = int(self.headers.get('Content-Length', 0) or 0)
        raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
        if not raw_body:
            return {}
        try:
            body = json.loads(raw_body)
        except json.JSONDecodeError as e:
            raise ValidationError("Request body must be valid JSON") from e
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return body

    def _dispatch(self, operation):
        with correlation_context(self.headers.get('X-Request-ID')) as correlation_id:
            try:
                status, body = _get_loop().run_until_complete(operation())
                self._send_json(status, body, correlation_id)
            except RentalsError as e:
                log = _logger.warning if e.status_code < 500 else _logger.error
                log(
                    "Listings request failed",
                    method=self.command,
                    code=e.code,
                    status=e.status_code,
                    error=e.message,
                    **{key: mask_user_id(value) if key.endswith("_id") else value
                       for key, value in e.details.items() if key != "errors"},
                )
                self._send_json(e.status_code, e.to_dict(), correlation_id)
            except Exception as e:
                _logger.exception("Unhandled error in listings endpoint", method=self.command, error=str(e))
                self._send_json(500, UnknownError(str(e)).to_dict(), correlation_id)

    async def _get(self):
        service = _get_service()
        params = _query_params(self.path)

        if params.get("id"):
            listing = await service.get_listing_by_id(params["id"])
            return 200, _listing_json(listing)

        filters = {key: value for key, value in params.items() if key not in _RESERVED_PARAMS}
        if params.get("userId"):
            if params.get("q"):
                filters["searchTerm"] = params["q"]
            result = await service.get_listings_by_user(params["userId"], filters)
        elif params.get("q"):
            result = await service.search(params["q"], filters)
        else:
            result = await service.get_listings(filters)

        return 200, result.model_dump(mode="json", by_alias=True)

    async def _post(self):
        service = _get_service()
        payload = decode_image_payloads(self._read_json())
        principal = await _resolve_principal(self.headers.get('Authorization'), service.config.users_table)

        # lister display fields default to the caller's profile
        payload.setdefault("listedByName", principal.display_name)
        payload.setdefault("listedByPhone", principal.phone)
        payload.setdefault("listedByEmail", principal.email)
        payload.setdefault("listedByCompany", principal.company)

        listing = await service.create_listing(payload, principal.id, principal.role.value)
        return 201, _listing_json(listing)

    async def _patch(self):
        service = _get_service()
        listing_id = _query_params(self.path).get("id")
        if not listing_id:
            raise ValidationError("Query parameter 'id' is required")

        payload = decode_image_payloads(self._read_json())
        principal = await _resolve_principal(self.headers.get('Authorization'), service.config.users_table)
        listing = await service.update_listing(listing_id, payload, principal)
        return 200, _listing_json(listing)

    async def _delete(self):
        service = _get_service()
        listing_id = _query_params(self.path).get("id")
        if not listing_id:
            raise ValidationError("Query parameter 'id' is required")

        principal = await _resolve_principal(self.headers.get('Authorization'), service.config.users_table)
        await service.delete_listing(listing_id, principal)
        return 200, {"ok": True, "id": listing_id}

    def do_GET(self):
        """Handle GET request."""
        self._dispatch(self._get)

    def do_POST(self):
        """Handle POST request (create)."""
        self._dispatch(self._post)

    def do_PATCH(self):
        """Handle PATCH request (partial update)."""
        self._dispatch(self._patch)

    def do_DELETE(self):
        """Handle DELETE request (soft delete)."""
        self._dispatch(self._delete)
