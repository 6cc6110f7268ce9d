"""Tests for image normalization and URL optimization."""

import pytest

from propertysearch.utils.images import (
    PLACEHOLDER_IMAGE_URL,
    is_supabase_storage_url,
    normalize_images,
    optimize_image_url,
)

STORAGE_URL = "https://abc.supabase.co/storage/v1/object/public/listings/villa.jpg"


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [
    (["a.jpg", "b.jpg"], ["a.jpg", "b.jpg"]),
    ('["a.jpg"]', ["a.jpg"]),
    (b'["a.jpg"]', ["a.jpg"]),
    ("[]", []),
    ("", []),
    ("not json", []),
    ('{"url": "a.jpg"}', []),
    (None, []),
    (["a.jpg", None, 3, ""], ["a.jpg"]),
])
def test_normalize_images(value, expected):
    assert normalize_images(value) == expected


@pytest.mark.unit
def test_is_supabase_storage_url():
    assert is_supabase_storage_url(STORAGE_URL)
    assert not is_supabase_storage_url("https://cdn.example.com/a.jpg")
    assert not is_supabase_storage_url(None)


@pytest.mark.unit
def test_optimize_image_url_storage():
    url = optimize_image_url(STORAGE_URL, width=400, quality=70, fmt="webp")

    assert url.startswith(STORAGE_URL + "?")
    assert "width=400" in url
    assert "quality=70" in url
    assert "format=webp" in url
    assert "transform=resize" in url


@pytest.mark.unit
def test_optimize_image_url_ignores_unknown_format():
    assert "format=" not in optimize_image_url(STORAGE_URL, width=400, fmt="gif")


@pytest.mark.unit
def test_optimize_image_url_passthrough():
    external = "https://cdn.example.com/a.jpg"
    placeholder = "https://placehold.co/600x400"

    assert optimize_image_url(external, width=400) == external
    assert optimize_image_url(placeholder, width=400) == placeholder
    assert optimize_image_url(None, width=400) == PLACEHOLDER_IMAGE_URL
    assert optimize_image_url("", width=400) == PLACEHOLDER_IMAGE_URL
