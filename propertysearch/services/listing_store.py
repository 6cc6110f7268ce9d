"""Listing store adapter - execute query descriptions against the listing collection."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, Union
from pydantic import ValidationError

from propertysearch.models.facets import DEFAULT_PAGE_SIZE, FacetParameters
from propertysearch.models.listing import ListingRecord
from propertysearch.models.query import (
    AnyOfContainsClause,
    Clause,
    ContainsClause,
    EqualsClause,
    InClause,
    QueryDescription,
    RangeClause,
)
from propertysearch.models.results import ListingPage
from propertysearch.services.query_builder import build_query
from propertysearch.services.query_string import parse_query_string
from propertysearch.services.supabase_client import SupabaseClient, is_supabase_configured
from propertysearch.utils.config import SearchConfig
from propertysearch.utils.errors import StoreUnavailableError, SupabaseError
from propertysearch.utils.logging import get_structured_logger, log_timing, sanitize_search_text

logger = get_structured_logger(__name__)

DATABASE_NOT_CONFIGURED = "Database not configured"

# Columns served to the listing page (no description body)
PROPERTY_SELECT_COLUMNS = ",".join((
    "id",
    "title",
    "property_type",
    "bhk",
    "baths",
    "floors",
    "selling_type",
    "price",
    "area_size",
    "area_unit",
    "city",
    "address",
    "state",
    "images",
    "status",
    "featured",
    "created_at",
    "updated_at",
))


def normalize_records(rows: Optional[Iterable[Mapping[str, Any]]]) -> list[ListingRecord]:
    """Validate raw rows into ListingRecords, skipping rows that cannot be read."""
    records = []
    for row in rows or []:
        try:
            records.append(ListingRecord.model_validate(row))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed listing row",
                listing_id=str(row.get("id")) if isinstance(row, Mapping) else None,
                error=str(e)
            )
    return records


class ListingStore(ABC):
    """A queryable collection of listing records."""

    @abstractmethod
    async def execute(self, query: QueryDescription) -> ListingPage:
        """Return one page of matching records and the pre-pagination total."""


def _postgrest_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _escape_like(text: str) -> str:
    # LIKE wildcards in user text match literally
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains_pattern(text: str) -> str:
    return f"%{_escape_like(text)}%"


def _quoted_pattern(text: str) -> str:
    # Double-quoted so commas and parentheses survive the or() filter syntax
    escaped = _contains_pattern(text).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class SupabaseListingStore(ListingStore):
    """Listing store backed by the Supabase properties table."""

    def __init__(self, table: str = SearchConfig.PROPERTIES_TABLE, columns: str = PROPERTY_SELECT_COLUMNS):
        self.table = table
        self.columns = columns

    def apply_clause(self, request: Any, clause: Clause) -> Any:
        """Add one clause to a PostgREST request builder."""
        if isinstance(clause, EqualsClause):
            return request.eq(clause.field, _postgrest_literal(clause.value))
        if isinstance(clause, InClause):
            return request.in_(clause.field, list(clause.values))
        if isinstance(clause, ContainsClause):
            return request.ilike(clause.field, _contains_pattern(clause.text))
        if isinstance(clause, RangeClause):
            if clause.gte is not None:
                request = request.gte(clause.field, clause.gte)
            if clause.lte is not None:
                request = request.lte(clause.field, clause.lte)
            return request
        if isinstance(clause, AnyOfContainsClause):
            pattern = _quoted_pattern(clause.text)
            return request.or_(",".join(f"{field}.ilike.{pattern}" for field in clause.fields))
        raise TypeError(f"Unsupported clause: {clause!r}")

    def _filtered(self, client: Any, query: QueryDescription, columns: str, head: bool = False) -> Any:
        request = client.table(self.table).select(columns, count="exact", head=head)
        for clause in query.predicates:
            request = self.apply_clause(request, clause)
        return request

    async def execute(self, query: QueryDescription) -> ListingPage:
        if not is_supabase_configured():
            logger.warning("Listing store unavailable", reason=DATABASE_NOT_CONFIGURED)
            return ListingPage.empty(
                page=query.page,
                page_size=query.limit,
                message=DATABASE_NOT_CONFIGURED,
                store_unavailable=True,
            )

        try:
            async with SupabaseClient() as client:
                request = self._filtered(client, query, self.columns)
                request = request.order(query.sort.field, desc=query.sort.descending)
                request = request.range(query.offset, query.range_end)
                try:
                    response = request.execute()
                except Exception as e:
                    if not _is_range_not_satisfiable(e):
                        raise
                    # Page past the end: report the real total with no rows
                    response = self._filtered(client, query, "id", head=True).execute()
                    return ListingPage(
                        records=[],
                        total=response.count or 0,
                        page=query.page,
                        page_size=query.limit,
                    )
        except StoreUnavailableError as e:
            logger.warning("Listing store unavailable", reason=str(e))
            return ListingPage.empty(
                page=query.page,
                page_size=query.limit,
                message=DATABASE_NOT_CONFIGURED,
                store_unavailable=True,
            )
        except Exception as e:
            raise SupabaseError(f"Failed to query listings: {e}")

        records = normalize_records(response.data)
        total = response.count if isinstance(response.count, int) else len(records)
        return ListingPage(records=records, total=total, page=query.page, page_size=query.limit)


def _is_range_not_satisfiable(error: Exception) -> bool:
    text = str(error)
    return "PGRST103" in text or "Requested range not satisfiable" in text


class InMemoryListingStore(ListingStore):
    """Listing store over an in-process list of rows (fixtures, previews, tests)."""

    def __init__(self, rows: Optional[Iterable[Mapping[str, Any]]] = None):
        self.rows: list[dict[str, Any]] = [dict(row) for row in rows or []]

    def add(self, row: Mapping[str, Any]) -> None:
        self.rows.append(dict(row))

    @staticmethod
    def matches(row: Mapping[str, Any], clause: Clause) -> bool:
        """Evaluate one clause against a raw row."""
        if isinstance(clause, EqualsClause):
            return row.get(clause.field) == clause.value
        if isinstance(clause, InClause):
            return row.get(clause.field) in clause.values
        if isinstance(clause, ContainsClause):
            return _contains(row.get(clause.field), clause.text)
        if isinstance(clause, RangeClause):
            value = row.get(clause.field)
            if value is None:
                return False
            if clause.gte is not None and value < clause.gte:
                return False
            if clause.lte is not None and value > clause.lte:
                return False
            return True
        if isinstance(clause, AnyOfContainsClause):
            return any(_contains(row.get(field), clause.text) for field in clause.fields)
        raise TypeError(f"Unsupported clause: {clause!r}")

    async def execute(self, query: QueryDescription) -> ListingPage:
        matched = [
            row for row in self.rows
            if all(self.matches(row, clause) for clause in query.predicates)
        ]

        field = query.sort.field
        present = [row for row in matched if row.get(field) is not None]
        missing = [row for row in matched if row.get(field) is None]
        present.sort(key=lambda row: _sort_key(row.get(field)), reverse=query.sort.descending)
        ordered = present + missing

        window = ordered[query.offset:query.offset + query.limit]
        return ListingPage(
            records=normalize_records(window),
            total=len(matched),
            page=query.page,
            page_size=query.limit,
        )


def _contains(value: Any, text: str) -> bool:
    if value is None:
        return False
    return text.lower() in str(value).lower()


def _sort_key(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


class ListingSearchService:
    """Build queries from facet parameters and run them against a listing store."""

    def __init__(self, store: ListingStore):
        self.store = store

    async def search(self, params: FacetParameters) -> ListingPage:
        """
        Run one search.

        Raises InvalidRangeError before touching the store when the price
        range is inverted; store failures surface as SupabaseError.
        """
        query = build_query(params)

        with log_timing(
            "listing_search",
            logger=logger,
            page=query.page,
            page_size=query.limit,
            clauses=len(query.predicates)
        ):
            result = await self.store.execute(query)

        logger.info(
            "Listing search completed",
            search_text=sanitize_search_text(params.free_text),
            property_category=params.property_category,
            total=result.total,
            returned=len(result.records),
            page=result.page,
            total_pages=result.total_pages,
            store_unavailable=result.store_unavailable
        )
        return result

    async def search_query_string(
        self,
        query: Union[str, Mapping[str, Any], None],
        page_size: int = DEFAULT_PAGE_SIZE
    ) -> ListingPage:
        """Run a search described by a raw query string or query mapping."""
        return await self.search(parse_query_string(query, page_size=page_size))


# Global search service instance
_listing_search_service: Optional[ListingSearchService] = None


def get_listing_search_service() -> ListingSearchService:
    """Get or create the global search service bound to Supabase."""
    global _listing_search_service
    if _listing_search_service is None:
        _listing_search_service = ListingSearchService(SupabaseListingStore())
    return _listing_search_service
