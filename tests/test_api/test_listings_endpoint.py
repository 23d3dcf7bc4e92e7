"""Tests for the listings endpoint."""

import base64
from io import BytesIO

import pytest
from unittest.mock import AsyncMock, patch

from api.listings import decode_image_payloads, handler
from rentals.data.sample_listings import sample_listings
from rentals.models.user import Principal, PrincipalRole
from rentals.services.listing_backend import InMemoryListingBackend
from rentals.services.listing_service import ListingService
from rentals.utils.config import ListingServiceConfig
from rentals.utils.errors import ValidationError
from tests.utils.assertions import assert_error_body
from tests.utils.factories import PNG_BYTES
from tests.utils.helpers import make_request_handler, response_json, response_status


@pytest.fixture
def api_service():
    """Seeded service the endpoint talks to."""
    service = ListingService(InMemoryListingBackend(sample_listings()), ListingServiceConfig())
    with patch('api.listings._get_service', return_value=service):
        yield service


@pytest.fixture
def as_principal():
    """Patch bearer-token resolution to return the given principal."""
    patchers = []

    def _login(principal):
        patcher = patch('api.listings._resolve_principal', AsyncMock(return_value=principal))
        patchers.append(patcher)
        return patcher.start()

    yield _login
    for patcher in patchers:
        patcher.stop()


def _call(method, path, body=None, headers=None):
    h = make_request_handler(handler, method, path, body=body, headers=headers)
    getattr(h, f"do_{method}")()
    return h


# ---------- GET ----------

@pytest.mark.unit
def test_list_listings(api_service):
    h = _call("GET", "/api/listings")

    assert response_status(h) == 200
    body = response_json(h)
    assert body["total"] == 6
    assert body["pageSize"] == 20
    assert body["hasMore"] is False
    assert body["items"][0]["id"] == "6"
    assert body["items"][0]["listedBy"]["name"] == "Ngozi Obi"


@pytest.mark.unit
def test_list_listings_with_filters(api_service):
    h = _call("GET", "/api/listings?state=Lagos&maxRent=500000&sortBy=rent&sortOrder=asc&pageSize=2")

    body = response_json(h)
    assert [item["rent"] for item in body["items"]] == [120000, 200000]
    assert body["total"] == 3
    assert body["nextCursor"] == "2"


@pytest.mark.unit
def test_search(api_service):
    body = response_json(_call("GET", "/api/listings?q=ikoyi"))

    assert [item["id"] for item in body["items"]] == ["1"]


@pytest.mark.unit
def test_list_by_user(api_service):
    body = response_json(_call("GET", "/api/listings?userId=owner-2"))

    assert [item["id"] for item in body["items"]] == ["5"]


@pytest.mark.unit
def test_list_by_user_with_search(api_service):
    body = response_json(_call("GET", "/api/listings?userId=agent-1&q=Surulere"))

    assert body["total"] == 0


@pytest.mark.unit
def test_get_one(api_service):
    h = _call("GET", "/api/listings?id=3")

    assert response_status(h) == 200
    assert response_json(h)["title"] == "Affordable 1-Bedroom in Surulere"


@pytest.mark.unit
def test_get_one_missing(api_service):
    h = _call("GET", "/api/listings?id=missing")

    assert response_status(h) == 404
    assert_error_body(response_json(h), "NOT_FOUND")


@pytest.mark.unit
def test_invalid_filters(api_service):
    h = _call("GET", "/api/listings?pageSize=0")

    assert response_status(h) == 400
    assert_error_body(response_json(h), "VALIDATION_ERROR")


@pytest.mark.unit
def test_request_id_echoed(api_service):
    h = _call("GET", "/api/listings", headers={"X-Request-ID": "req_abc123"})

    h.send_header.assert_any_call('X-Request-ID', 'req_abc123')


# ---------- POST ----------

@pytest.mark.unit
def test_create_listing(api_service, as_principal, create_payload):
    as_principal(Principal(
        id="agent-7",
        role=PrincipalRole.AGENT,
        display_name="Amaka Nwosu",
        phone="+234 809 000 1111",
        company="Coastal Homes",
    ))
    create_payload["listedBy"] = {"id": "agent-1", "role": "owner"}

    h = _call("POST", "/api/listings", body=create_payload, headers={"Authorization": "Bearer jwt"})

    assert response_status(h) == 201
    body = response_json(h)
    assert body["listedBy"]["id"] == "agent-7"
    assert body["listedBy"]["role"] == "agent"
    assert body["listedBy"]["name"] == "Amaka Nwosu"
    assert body["listedBy"]["company"] == "Coastal Homes"
    assert body["isActive"] is True
    assert body["status"] == "available"


@pytest.mark.unit
def test_create_listing_with_base64_image(api_service, as_principal, create_payload):
    as_principal(Principal(id="owner-9", role=PrincipalRole.OWNER))
    create_payload["images"] = [{
        "kind": "new",
        "filename": "front.png",
        "contentType": "image/png",
        "content": base64.b64encode(PNG_BYTES).decode("ascii"),
    }]

    h = _call("POST", "/api/listings", body=create_payload)

    assert response_status(h) == 201
    image = response_json(h)["images"][0]
    assert image["url"].startswith("memory://listings/")
    stored = api_service.backend.images.objects[image["url"][len("memory://"):]]
    assert stored["content"] == PNG_BYTES


@pytest.mark.unit
def test_create_listing_requires_token(api_service, create_payload):
    h = _call("POST", "/api/listings", body=create_payload)

    assert response_status(h) == 401
    assert_error_body(response_json(h), "UNAUTHENTICATED")


@pytest.mark.unit
def test_create_listing_invalid_json(api_service, as_principal):
    as_principal(Principal(id="owner-9", role=PrincipalRole.OWNER))
    h = make_request_handler(handler, "POST", "/api/listings")
    h.rfile = BytesIO(b"{not json")
    h.headers["Content-Length"] = "9"

    h.do_POST()

    assert response_status(h) == 400
    assert_error_body(response_json(h), "VALIDATION_ERROR")


@pytest.mark.unit
def test_create_listing_negative_rent(api_service, as_principal, create_payload):
    as_principal(Principal(id="owner-9", role=PrincipalRole.OWNER))
    create_payload["rent"] = -5

    h = _call("POST", "/api/listings", body=create_payload)

    assert response_status(h) == 400
    assert response_json(h) == {"error": "Rent cannot be negative", "code": "VALIDATION_ERROR"}


# ---------- PATCH / DELETE ----------

@pytest.mark.unit
def test_update_listing(api_service, as_principal):
    as_principal(Principal(id="owner-1", role=PrincipalRole.OWNER))

    h = _call("PATCH", "/api/listings?id=3", body={"rent": 210000, "status": "pending"})

    assert response_status(h) == 200
    body = response_json(h)
    assert body["rent"] == 210000
    assert body["status"] == "pending"
    assert body["createdAt"].startswith("2026-01-10T09:45:00")


@pytest.mark.unit
def test_update_listing_forbidden(api_service, as_principal):
    as_principal(Principal(id="owner-2", role=PrincipalRole.OWNER))

    h = _call("PATCH", "/api/listings?id=3", body={"rent": 1})

    assert response_status(h) == 403
    body = response_json(h)
    assert_error_body(body, "FORBIDDEN")
    assert "owner-1" not in body["error"]


@pytest.mark.unit
def test_update_listing_requires_id(api_service, as_principal):
    as_principal(Principal(id="owner-1", role=PrincipalRole.OWNER))

    h = _call("PATCH", "/api/listings", body={"rent": 1})

    assert response_status(h) == 400


@pytest.mark.unit
def test_delete_listing(api_service, as_principal):
    as_principal(Principal(id="owner-2", role=PrincipalRole.OWNER))

    h = _call("DELETE", "/api/listings?id=5")

    assert response_status(h) == 200
    assert response_json(h) == {"ok": True, "id": "5"}
    listed = response_json(_call("GET", "/api/listings"))
    assert "5" not in [item["id"] for item in listed["items"]]
    assert response_json(_call("GET", "/api/listings?id=5"))["isActive"] is False


@pytest.mark.unit
def test_delete_listing_by_admin(api_service, as_principal):
    as_principal(Principal(id="admin-1", role=PrincipalRole.ADMIN))

    h = _call("DELETE", "/api/listings?id=1")

    assert response_status(h) == 200


@pytest.mark.unit
def test_delete_missing_listing(api_service, as_principal):
    as_principal(Principal(id="owner-1", role=PrincipalRole.OWNER))

    h = _call("DELETE", "/api/listings?id=nonexistent-id")

    assert response_status(h) == 404


@pytest.mark.unit
def test_unexpected_error_is_generic():
    with patch('api.listings._get_service', side_effect=RuntimeError("secret stack detail")):
        h = _call("GET", "/api/listings")

    assert response_status(h) == 500
    body = response_json(h)
    assert_error_body(body, "UNKNOWN_ERROR")
    assert "secret" not in body["error"]


# ---------- payload decoding ----------

@pytest.mark.unit
def test_decode_image_payloads_leaves_existing_images():
    payload = {"images": [{"kind": "existing", "id": "img-1", "url": "https://cdn/1"}]}

    assert decode_image_payloads(payload) == payload


@pytest.mark.unit
def test_decode_image_payloads_rejects_bad_base64():
    with pytest.raises(ValidationError, match="front.png"):
        decode_image_payloads({"images": [{"kind": "new", "filename": "front.png", "content": "***"}]})
