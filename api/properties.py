"""Property search endpoint for Vercel (GET /api/get-properties)."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import urlsplit
import json
import asyncio
import logging

from propertysearch.models.facets import FacetParameters
from propertysearch.services.listing_store import get_listing_search_service
from propertysearch.services.query_string import parse_query_string
from propertysearch.utils.config import SearchConfig
from propertysearch.utils.errors import InvalidRangeError, TransportError
from propertysearch.utils.logging import correlation_context
from propertysearch.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
_logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

CACHE_CONTROL = "public, s-maxage=10, stale-while-revalidate=30, max-age=10"


def empty_body(params: FacetParameters, error: str) -> dict:
    """Error body that still carries an empty result page."""
    return {
        "error": error,
        "properties": [],
        "total": 0,
        "page": params.page,
        "limit": params.page_size,
        "totalPages": 0,
    }


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for property search."""

    def _send_json(self, status: int, body: dict, cache: bool = False) -> None:
        payload = json.dumps(body).encode('utf-8')
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(payload)))
        for name, value in CORS_HEADERS.items():
            self.send_header(name, value)
        if cache:
            self.send_header('Cache-Control', CACHE_CONTROL)
        self.end_headers()
        self.wfile.write(payload)

    def do_GET(self):
        """Handle search request."""
        query = urlsplit(self.path).query
        params = parse_query_string(query, page_size=SearchConfig.API_PAGE_SIZE)

        with correlation_context() as correlation_id:
            try:
                service = get_listing_search_service()
                result = asyncio.run(service.search(params))
            except InvalidRangeError as e:
                body = empty_body(params, str(e))
                body["hint"] = e.hint
                self._send_json(400, body)
                return
            except TransportError as e:
                _logger.error(f"Listing store error: {e}", extra={"correlation_id": correlation_id})
                self._send_json(500, empty_body(params, str(e)))
                return
            except Exception as e:
                _logger.error(f"Get properties error: {e}", exc_info=True, extra={"correlation_id": correlation_id})
                self._send_json(500, empty_body(params, "Failed to fetch properties"))
                return

        self._send_json(200, result.to_response(), cache=True)

    def do_OPTIONS(self):
        """Handle CORS preflight."""
        self.send_response(200)
        for name, value in CORS_HEADERS.items():
            self.send_header(name, value)
        self.send_header('Content-Length', '0')
        self.end_headers()

    def _method_not_allowed(self):
        self._send_json(405, {"error": "Method not allowed"})

    do_POST = _method_not_allowed
    do_PUT = _method_not_allowed
    do_PATCH = _method_not_allowed
    do_DELETE = _method_not_allowed
