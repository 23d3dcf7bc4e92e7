"""Test helper functions."""

import json
from http.client import HTTPMessage
from io import BytesIO
from typing import Any, Dict, Optional
from unittest.mock import Mock


def make_request_handler(
    handler_cls,
    method: str = "GET",
    path: str = "/api/listings",
    body: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
):
    """Build a request handler without a socket, ready for a ``do_*`` call."""
    raw_body = json.dumps(body).encode('utf-8') if body is not None else b""

    message = HTTPMessage()
    for key, value in (headers or {}).items():
        message[key] = value
    if raw_body:
        message["Content-Type"] = "application/json"
        message["Content-Length"] = str(len(raw_body))

    h = handler_cls.__new__(handler_cls)
    h.command = method
    h.path = path
    h.headers = message
    h.rfile = BytesIO(raw_body)
    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()
    return h


def response_status(h) -> int:
    return h.send_response.call_args[0][0]


def response_json(h) -> Dict[str, Any]:
    h.wfile.seek(0)
    return json.loads(h.wfile.read().decode('utf-8'))
