"""Image field normalization and Supabase Storage URL optimization."""

import json
from typing import Any, Optional
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

PLACEHOLDER_IMAGE_URL = "https://placehold.co/800x600/e2e8f0/64748b?text=No+Image"
PLACEHOLDER_HOSTS = ("placehold.co", "via.placeholder.com")
IMAGE_FORMATS = ("webp", "avif", "jpeg", "png")


def normalize_images(value: Any) -> list[str]:
    """
    Coerce a stored images value into a list of URL strings.

    The database may hand back the JSON array as an encoded string. Anything
    that does not decode to a list yields an empty list; non-string entries
    are dropped.
    """
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []

    if not isinstance(value, (list, tuple)):
        return []

    return [item for item in value if isinstance(item, str) and item]


def is_supabase_storage_url(url: Optional[str]) -> bool:
    """Check if URL points at Supabase Storage."""
    if not url:
        return False
    return "supabase.co/storage" in url or "supabase.com/storage" in url


def optimize_image_url(
    url: Optional[str],
    width: int,
    quality: int = 80,
    fmt: Optional[str] = None
) -> str:
    """Add CDN transformation parameters to a Supabase Storage image URL."""
    if not url:
        return PLACEHOLDER_IMAGE_URL

    if any(host in url for host in PLACEHOLDER_HOSTS):
        return url

    if not is_supabase_storage_url(url):
        return url

    parts = urlsplit(url)
    params = dict(parse_qsl(parts.query, keep_blank_values=True))
    params["width"] = str(width)
    params["quality"] = str(quality)
    if fmt in IMAGE_FORMATS:
        params["format"] = fmt
    params["transform"] = "resize"

    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))
