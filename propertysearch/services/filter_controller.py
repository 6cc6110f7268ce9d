"""Filter state controller for the listing page.

Owns the filter/sort/page state of one page session and keeps it reconciled
with the URL and with the results shown:

* URL navigation hydrates state (``sync_from_url``); it is the only path by
  which the URL is read back.
* User edits change state immediately and rewrite the URL only when the
  canonical serialization differs from the URL's.
* Fetches run against an immutable snapshot and carry a request token; a
  completion whose token is no longer current is discarded.
"""

import asyncio
from collections import deque
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Union

from propertysearch.models.facets import (
    LISTING_PAGE_SIZE,
    FacetParameters,
    SortDirection,
)
from propertysearch.models.listing import ListingRecord
from propertysearch.models.results import ListingPage
from propertysearch.services.debounce import Debouncer
from propertysearch.services.pagination import clamp_page, page_window
from propertysearch.services.query_builder import check_price_range
from propertysearch.services.query_string import build_listing_url, parse_query_string, serialize_facets
from propertysearch.utils.config import SearchConfig
from propertysearch.utils.errors import InvalidRangeError
from propertysearch.utils.logging import get_structured_logger, sanitize_search_text

logger = get_structured_logger(__name__)

SEARCH_KEY = "search"
MAX_PENDING_REWRITES = 32

Fetcher = Callable[[FacetParameters], Awaitable[ListingPage]]


class Navigator(Protocol):
    """Outgoing side of the browser history / query string."""

    # True when every replace() comes back through sync_from_url, in order
    echoes: bool

    def replace(self, query_string: str) -> None:
        """Replace the current URL's query string without a reload."""


class ControllerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    SYNCING_FROM_URL = "syncing_from_url"
    READY = "ready"
    FETCHING = "fetching"


class FilterStateController:
    """Single owner of the listing page's filter state and result page."""

    def __init__(
        self,
        fetcher: Fetcher,
        navigator: Navigator,
        page_size: int = LISTING_PAGE_SIZE,
        debounce_seconds: float = SearchConfig.SEARCH_DEBOUNCE_SECONDS,
    ):
        self.fetcher = fetcher
        self.navigator = navigator
        self.page_size = page_size

        self.state = ControllerState.UNINITIALIZED
        self.params = FacetParameters(page_size=page_size)
        self.search_input = ""

        self.records: list[ListingRecord] = []
        self.total = 0
        self.total_pages = 0
        self.loading = False
        self.error: Optional[Exception] = None
        self.range_error: Optional[InvalidRangeError] = None
        self.store_unavailable = False
        self.store_message: Optional[str] = None

        self.url_rewrites = 0
        self.fetch_count = 0
        self.stale_discards = 0

        self._token = 0
        self._has_results = False
        self._url_query: Optional[str] = None
        self._pending_rewrites: deque[str] = deque(maxlen=MAX_PENDING_REWRITES)
        self._fetch_tasks: set[asyncio.Task] = set()
        self._debouncer = Debouncer(self._on_search_settled, window_seconds=debounce_seconds)

    # -- URL side -----------------------------------------------------------

    def sync_from_url(self, query: Union[str, Mapping[str, Any], None]) -> None:
        """Hydrate state from a navigation event."""
        parsed = parse_query_string(query, page_size=self.page_size)
        canonical = serialize_facets(parsed, default_page_size=self.page_size)
        current = self._canonical_state()

        if self._pending_rewrites and canonical == self._pending_rewrites[0]:
            # Echoes arrive in the order the rewrites were issued
            self._pending_rewrites.popleft()
            self._url_query = canonical
            if canonical != current:
                logger.debug("Ignoring echo of superseded URL rewrite", query=sanitize_search_text(canonical, max_length=200))
            return

        # A real navigation; outstanding echoes can no longer be matched
        self._pending_rewrites.clear()
        self._url_query = canonical
        if self.state != ControllerState.UNINITIALIZED and canonical == current:
            logger.debug("URL already matches filter state", query=sanitize_search_text(canonical, max_length=200))
            return

        self._transition(ControllerState.SYNCING_FROM_URL)
        self._debouncer.cancel(SEARCH_KEY)
        self.search_input = parsed.free_text or ""
        self._token += 1
        self.params = parsed
        self.error = None

        logger.info(
            "Filters hydrated from URL",
            query=sanitize_search_text(canonical, max_length=200),
            page=parsed.page
        )

        self._transition(ControllerState.READY)
        self._dispatch_fetch()

    def current_url(self, path: str = "/properties") -> str:
        return build_listing_url(self.params, path=path, default_page_size=self.page_size)

    # -- user edits ---------------------------------------------------------

    def type_search_text(self, text: str) -> None:
        """Record search box input; it reaches the filters after the debounce window."""
        self.search_input = text
        self._debouncer.trigger(SEARCH_KEY, text)

    async def submit_search(self) -> None:
        """Apply pending search box input immediately."""
        await self._debouncer.flush(SEARCH_KEY)

    def set_category(self, category: Optional[str]) -> None:
        self._apply(property_category=category)

    def set_transaction_type(self, transaction_type: Optional[str]) -> None:
        self._apply(transaction_type=transaction_type)

    def set_locality(self, locality: Optional[str]) -> None:
        self._apply(locality=locality)

    def set_bedrooms(self, bedrooms: Optional[int]) -> None:
        self._apply(bedroom_count=bedrooms)

    def set_price_range(self, price_min: Optional[float], price_max: Optional[float]) -> None:
        self._apply(price_min=price_min, price_max=price_max)

    def set_featured(self, featured: Optional[bool]) -> None:
        self._apply(is_featured=featured)

    def set_listing_state(self, status: Optional[str]) -> None:
        self._apply(listing_state=status)

    def set_sort(self, field: str, direction: Optional[str] = None) -> None:
        changes: dict[str, Any] = {"sort_field": field}
        if direction is not None:
            changes["sort_direction"] = direction
        self._apply(**changes)

    def toggle_sort_direction(self) -> None:
        flipped = SortDirection.ASC if self.params.sort_direction == SortDirection.DESC else SortDirection.DESC
        self._apply(sort_direction=flipped)

    def set_page(self, page: int) -> None:
        if self.total_pages:
            page = clamp_page(page, self.total_pages)
        self._apply(page=page)

    def clear_filters(self) -> None:
        """Reset every filter and the search box; sort order is kept."""
        self._debouncer.cancel(SEARCH_KEY)
        self.search_input = ""
        self._replace_params(FacetParameters(
            page_size=self.page_size,
            sort_field=self.params.sort_field,
            sort_direction=self.params.sort_direction,
        ))

    def retry(self) -> None:
        """Re-issue the fetch for the current filters after a failure."""
        if self.state == ControllerState.UNINITIALIZED:
            return
        self._dispatch_fetch()

    # -- view ---------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        """A successful search matched nothing (not a failure, not unavailable)."""
        return self._has_results and self.total == 0 and not self.store_unavailable

    @property
    def has_active_filters(self) -> bool:
        return self.params.has_active_filters or bool(self.search_input.strip())

    @property
    def available_cities(self) -> list[str]:
        return sorted({record.city for record in self.records if record.city})

    @property
    def available_property_types(self) -> list[str]:
        return sorted({record.property_type for record in self.records if record.property_type})

    @property
    def page_numbers(self) -> list[Optional[int]]:
        return page_window(self.params.page, self.total_pages)

    # -- lifecycle ----------------------------------------------------------

    async def wait_until_idle(self) -> None:
        """Wait for pending debounce deliveries and fetches to settle."""
        while True:
            await self._debouncer.wait()
            tasks = [task for task in self._fetch_tasks if not task.done()]
            if not tasks:
                if not self._debouncer.timers:
                    return
                continue
            await asyncio.gather(*tasks, return_exceptions=True)

    def close(self) -> None:
        """Stop timers and make any in-flight response irrelevant."""
        self._debouncer.cancel()
        self._token += 1
        self.loading = False

    # -- internals ----------------------------------------------------------

    def _canonical_state(self) -> str:
        return serialize_facets(self.params, default_page_size=self.page_size)

    def _transition(self, state: ControllerState) -> None:
        if state != self.state:
            logger.debug("Controller state change", from_state=self.state.value, to_state=state.value)
            self.state = state

    def _on_search_settled(self, key: str, text: str) -> None:
        self._apply(free_text=text)

    def _apply(self, **changes: Any) -> None:
        self._replace_params(self.params.with_changes(**changes))

    def _replace_params(self, new_params: FacetParameters) -> None:
        if new_params.differs_outside_page(self.params) and new_params.page != 1:
            new_params = new_params.with_changes(page=1)

        if new_params == self.params:
            return

        self.params = new_params
        if self.state == ControllerState.UNINITIALIZED:
            # Filters are not known until the URL has been read
            return

        self._rewrite_url()
        self._dispatch_fetch()

    def _rewrite_url(self) -> None:
        canonical = self._canonical_state()
        if canonical == self._url_query:
            return

        self._url_query = canonical
        if getattr(self.navigator, "echoes", False):
            self._pending_rewrites.append(canonical)
        self.url_rewrites += 1
        logger.debug("Rewriting URL to match filters", query=sanitize_search_text(canonical, max_length=200))
        self.navigator.replace(canonical)

    def _dispatch_fetch(self) -> None:
        if self.state == ControllerState.UNINITIALIZED:
            return

        # Anything already in flight is for older filters
        self._token += 1

        try:
            check_price_range(self.params)
        except InvalidRangeError as e:
            self.range_error = e
            self.loading = False
            self._transition(ControllerState.READY)
            logger.info("Price range rejected", price_min=e.price_min, price_max=e.price_max)
            return

        self.range_error = None
        token = self._token
        snapshot = self.params
        self.loading = True
        self.fetch_count += 1
        self._transition(ControllerState.FETCHING)

        task = asyncio.get_running_loop().create_task(self._run_fetch(token, snapshot))
        self._fetch_tasks.add(task)
        task.add_done_callback(self._fetch_tasks.discard)

    async def _run_fetch(self, token: int, snapshot: FacetParameters) -> None:
        try:
            page = await self.fetcher(snapshot)
        except InvalidRangeError as e:
            if self._is_current(token):
                self.range_error = e
                self._finish_fetch()
            return
        except Exception as e:
            if not self._is_current(token):
                return
            self.error = e
            self._finish_fetch()
            logger.warning(
                "Listing fetch failed; keeping previous results",
                error=str(e),
                request_token=token
            )
            return

        if not self._is_current(token):
            return

        self.records = list(page.records)
        self.total = page.total
        self.total_pages = page.total_pages
        self.store_unavailable = page.store_unavailable
        self.store_message = page.message
        self.error = None
        self._has_results = True
        self._finish_fetch()

        logger.debug(
            "Listing results applied",
            request_token=token,
            total=page.total,
            returned=len(page.records),
            page=page.page
        )

    def _is_current(self, token: int) -> bool:
        if token == self._token:
            return True
        self.stale_discards += 1
        logger.debug("Discarding stale listing response", request_token=token, current_token=self._token)
        return False

    def _finish_fetch(self) -> None:
        self.loading = False
        self._transition(ControllerState.READY)
