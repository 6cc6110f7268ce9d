"""Custom assertion helpers."""

from typing import Any, Dict


def assert_valid_search_response(body: Dict[str, Any]) -> None:
    """Assert that a search response body has the listing page shape."""
    for key in ("properties", "total", "page", "limit", "totalPages"):
        assert key in body, f"missing {key}"
    assert isinstance(body["properties"], list)
    assert body["total"] >= len(body["properties"])
    for listing in body["properties"]:
        assert_images_normalized(listing)


def assert_images_normalized(listing: Any) -> None:
    """Assert that a listing's images value is a list of strings."""
    images = listing["images"] if isinstance(listing, dict) else listing.images
    assert isinstance(images, list)
    assert all(isinstance(url, str) for url in images)
