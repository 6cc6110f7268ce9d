"""Query builder - translate facet parameters into a query description.

Pure and I/O free. Malformed facets were already degraded by the
FacetParameters model; the only rejected input is an inverted price range.
"""

from typing import Optional

from propertysearch.models.facets import FacetParameters, SortDirection
from propertysearch.models.query import (
    AnyOfContainsClause,
    CategoryResolution,
    Clause,
    ContainsClause,
    EqualsClause,
    InClause,
    QueryDescription,
    RangeClause,
    SortSpec,
)
from propertysearch.services.category_resolver import infer_category_from_text, resolve_category
from propertysearch.services.pagination import page_offset
from propertysearch.utils.errors import InvalidRangeError
from propertysearch.utils.logging import get_structured_logger, sanitize_search_text

logger = get_structured_logger(__name__)

CATEGORY_FIELD = "property_type"
FREE_TEXT_FIELDS = ("title", "content", "address", "city", "state")


def check_price_range(params: FacetParameters) -> None:
    """Raise InvalidRangeError when both price bounds are set and inverted."""
    if params.price_min is not None and params.price_max is not None and params.price_min > params.price_max:
        raise InvalidRangeError(params.price_min, params.price_max)


def category_clause(resolution: CategoryResolution) -> Clause:
    """Equality for single-valued resolutions, membership for expanded sets."""
    if resolution.is_single:
        return EqualsClause(field=CATEGORY_FIELD, value=resolution.values[0])
    return InClause(field=CATEGORY_FIELD, values=resolution.values)


def lifecycle_applies(params: FacetParameters) -> bool:
    """Featured queries span every lifecycle state unless a status was chosen."""
    return not (params.is_featured is not None and params.listing_state is None)


def build_query(params: FacetParameters) -> QueryDescription:
    """Build the query description for one search request."""
    check_price_range(params)

    predicates: list[Clause] = []

    if lifecycle_applies(params):
        predicates.append(EqualsClause(field="status", value=params.effective_listing_state.value))

    category = resolve_category(params.property_category)
    if category is not None:
        predicates.append(category_clause(category))

    text_category: Optional[CategoryResolution] = None
    text: Optional[str] = None
    if params.free_text:
        text_category, text = infer_category_from_text(params.free_text)
        if text_category is not None:
            predicates.append(category_clause(text_category))

    if params.transaction_type is not None:
        predicates.append(EqualsClause(field="selling_type", value=params.transaction_type.value))

    if params.locality:
        predicates.append(ContainsClause(field="city", text=params.locality))

    if params.bedroom_count is not None:
        predicates.append(EqualsClause(field="bhk", value=params.bedroom_count))

    if params.is_featured is not None:
        predicates.append(EqualsClause(field="featured", value=params.is_featured))

    if params.price_min is not None or params.price_max is not None:
        predicates.append(RangeClause(field="price", gte=params.price_min, lte=params.price_max))

    if text:
        predicates.append(AnyOfContainsClause(fields=FREE_TEXT_FIELDS, text=text))

    query = QueryDescription(
        predicates=tuple(predicates),
        sort=SortSpec(
            field=params.sort_field.value,
            descending=params.sort_direction == SortDirection.DESC,
        ),
        offset=page_offset(params.page, params.page_size),
        limit=params.page_size,
        page=params.page,
    )

    logger.debug(
        "Query built",
        clauses=[clause.kind for clause in query.predicates],
        category=category.values if category else None,
        category_kind=category.kind.value if category else None,
        text_category=text_category.values if text_category else None,
        search_text=sanitize_search_text(text),
        sort_field=query.sort.field,
        offset=query.offset,
        limit=query.limit,
    )
    return query
