"""Canonical query-string serialization of facet parameters.

Only non-default values are written, in a fixed parameter order, so two
equal ``FacetParameters`` always serialize to the same string. The filter
controller relies on that string equality to decide whether the URL needs
rewriting.
"""

from typing import Any, Mapping, Optional, Union
from urllib.parse import parse_qs, urlencode

from propertysearch.models.facets import (
    DEFAULT_PAGE_SIZE,
    FacetParameters,
    SortDirection,
    SortField,
)

# query-string name -> FacetParameters field, in canonical order
QUERY_PARAMS = (
    ("search", "free_text"),
    ("propertyType", "property_category"),
    ("sellingType", "transaction_type"),
    ("city", "locality"),
    ("bhk", "bedroom_count"),
    ("status", "listing_state"),
    ("featured", "is_featured"),
    ("minPrice", "price_min"),
    ("maxPrice", "price_max"),
    ("sortBy", "sort_field"),
    ("sortOrder", "sort_direction"),
    ("page", "page"),
    ("limit", "page_size"),
)


def _first_values(query: Union[str, Mapping[str, Any], None]) -> dict[str, Any]:
    if query is None:
        return {}

    if isinstance(query, str):
        raw = parse_qs(query.lstrip("?"), keep_blank_values=False)
    else:
        raw = dict(query)

    values = {}
    for key, value in raw.items():
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is not None:
            values[key] = value
    return values


def parse_query_string(
    query: Union[str, Mapping[str, Any], None],
    page_size: int = DEFAULT_PAGE_SIZE
) -> FacetParameters:
    """
    Parse a query string (or query mapping) into facet parameters.

    Unknown keys are ignored, repeated keys use their first value and
    malformed values degrade to defaults. ``page_size`` is used when the
    query carries no usable ``limit``.
    """
    values = _first_values(query)

    data: dict[str, Any] = {}
    for name, field in QUERY_PARAMS:
        if name in values:
            data[field] = values[name]

    params = FacetParameters.model_validate(data)
    if "page_size" not in data or _limit_degraded(data.get("page_size")):
        params = params.with_changes(page_size=page_size)
    return params


def _limit_degraded(raw: Any) -> bool:
    try:
        return int(str(raw).strip()) < 1
    except ValueError:
        return True


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_number(value)
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def serialize_facets(params: FacetParameters, default_page_size: int = DEFAULT_PAGE_SIZE) -> str:
    """Canonical query string for ``params`` (non-default values only, no leading '?')."""
    defaults = {
        "sort_field": SortField.CREATED_AT,
        "sort_direction": SortDirection.DESC,
        "page": 1,
        "page_size": default_page_size,
    }

    pairs = []
    for name, field in QUERY_PARAMS:
        value = getattr(params, field)
        if value is None or value == defaults.get(field):
            continue
        pairs.append((name, _format_value(value)))

    return urlencode(pairs)


def canonicalize_query_string(
    query: Union[str, Mapping[str, Any], None],
    page_size: int = DEFAULT_PAGE_SIZE
) -> str:
    """Canonical form of an incoming query string."""
    return serialize_facets(parse_query_string(query, page_size=page_size), default_page_size=page_size)


def build_listing_url(params: FacetParameters, path: str = "/properties", default_page_size: Optional[int] = None) -> str:
    """Listing page URL for ``params``."""
    query = serialize_facets(params, default_page_size=default_page_size or params.page_size)
    return f"{path}?{query}" if query else path
