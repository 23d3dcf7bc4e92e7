"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json

from rentals.utils.config import ListingServiceConfig
from rentals.utils.errors import ValidationError


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function.

    Reports the configured listing backend; a configuration that does not load
    makes the check fail with 503.
    """

    def do_GET(self):
        """Handle GET request."""
        body = {"status": "ok", "service": "rentals-backend"}
        status = 200
        try:
            body["backend"] = ListingServiceConfig.from_env().backend.value
        except ValidationError as e:
            status = 503
            body["status"] = "misconfigured"
            body["errors"] = e.errors

        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(body).encode('utf-8'))

    def do_POST(self):
        """Handle POST request (same as GET for health check)."""
        self.do_GET()
