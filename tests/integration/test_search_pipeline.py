"""Integration tests: URL -> controller -> search service -> store -> results."""

import pytest

from propertysearch.services.filter_controller import FilterStateController
from propertysearch.services.listing_store import InMemoryListingStore, ListingSearchService
from propertysearch.services.query_string import parse_query_string
from tests.utils.factories import create_listings
from tests.utils.helpers import FakeNavigator, RecordingFetcher


def build_pipeline(rows, echo=True):
    service = ListingSearchService(InMemoryListingStore(rows))
    fetcher = RecordingFetcher(service)
    navigator = FakeNavigator(echo=echo)
    controller = FilterStateController(fetcher, navigator, page_size=9, debounce_seconds=0.02)
    navigator.controller = controller
    return controller, navigator, fetcher


@pytest.mark.integration
@pytest.mark.asyncio
async def test_deep_link_to_last_page():
    """Test a shared URL for page 4 shows the remaining rows."""
    controller, navigator, _ = build_pipeline(create_listings(30, city="Kochi"))

    controller.sync_from_url("city=kochi&page=4")
    await controller.wait_until_idle()

    assert controller.total == 30
    assert controller.total_pages == 4
    assert len(controller.records) == 3
    assert navigator.replaced == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_filter_session_round_trips_through_url(category_rows):
    """Test each edit's URL hydrates to the same filters it came from."""
    controller, navigator, fetcher = build_pipeline(category_rows)

    controller.sync_from_url("")
    await controller.wait_until_idle()
    assert controller.total == 6

    controller.set_category("land")
    await controller.wait_until_idle()
    assert {record.id for record in controller.records} == {"plot-1", "land-1", "cland-1"}

    controller.set_locality("Kochi")
    controller.set_sort("price", "asc")
    await controller.wait_until_idle()

    assert [record.id for record in controller.records] == ["plot-1", "cland-1"]
    assert navigator.replaced[-1] == "propertyType=land&city=Kochi&sortBy=price&sortOrder=asc"
    assert parse_query_string(navigator.replaced[-1], page_size=9) == controller.params
    assert fetcher.calls[-1] == controller.params


@pytest.mark.integration
@pytest.mark.asyncio
async def test_featured_listing_includes_sold(category_rows):
    controller, _, _ = build_pipeline(category_rows)

    controller.sync_from_url("featured=true")
    await controller.wait_until_idle()

    assert {record.id for record in controller.records} == {"sold-villa", "featured-flat"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_search_text_with_category_phrase(category_rows):
    controller, navigator, _ = build_pipeline(category_rows)

    controller.sync_from_url("")
    controller.type_search_text("commercial land MG Road")
    await controller.wait_until_idle()

    assert [record.id for record in controller.records] == ["cland-1"]
    assert navigator.replaced == ["search=commercial+land+MG+Road"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_no_matches_is_empty_state(category_rows):
    controller, _, _ = build_pipeline(category_rows)

    controller.sync_from_url("city=Atlantis")
    await controller.wait_until_idle()

    assert controller.is_empty
    assert controller.error is None
    assert controller.has_active_filters
