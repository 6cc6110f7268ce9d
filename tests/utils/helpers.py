"""Test helper functions."""

import asyncio
import json
from io import BytesIO
from typing import Any, Optional

from propertysearch.models.facets import FacetParameters
from propertysearch.models.results import ListingPage


class MockSocket:
    """Socket stand-in feeding a raw request and capturing the response."""

    def __init__(self, raw_request: bytes):
        self.raw_request = raw_request
        self.sent = bytearray()

    def makefile(self, *args, **kwargs):
        return BytesIO(self.raw_request)

    def sendall(self, data):
        self.sent.extend(data)

    def close(self):
        pass


def call_handler(handler_class, method: str = "GET", path: str = "/api/get-properties") -> tuple[int, dict, Any]:
    """Run a BaseHTTPRequestHandler subclass for one request; return status, headers, body."""
    sock = MockSocket(f"{method} {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode("utf-8"))
    handler_class(sock, ("127.0.0.1", 8000), None)

    head, _, body = bytes(sock.sent).partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    status = int(lines[0].split()[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()

    parsed = json.loads(body.decode("utf-8")) if body else None
    return status, headers, parsed


class FakeNavigator:
    """
    Records URL rewrites; optionally echoes them back like a browser router.

    With ``deferred=True`` the navigator declares that it echoes but leaves
    delivery to the test (``deliver_echoes``), like an asynchronous router.
    """

    def __init__(self, echo: bool = False, deferred: bool = False):
        self.echo = echo
        self.deferred = deferred
        self.echoes = echo
        self.controller = None
        self.replaced: list[str] = []
        self.undelivered: list[str] = []

    def replace(self, query_string: str) -> None:
        self.replaced.append(query_string)
        if not self.echo or self.controller is None:
            return
        if self.deferred:
            self.undelivered.append(query_string)
        else:
            self.controller.sync_from_url(query_string)

    def deliver_echoes(self) -> None:
        pending, self.undelivered = self.undelivered, []
        for query_string in pending:
            self.controller.sync_from_url(query_string)


class ControlledFetcher:
    """Fetch boundary whose responses the test resolves explicitly."""

    def __init__(self):
        self.calls: list[tuple[FacetParameters, asyncio.Future]] = []

    async def __call__(self, params: FacetParameters) -> ListingPage:
        future = asyncio.get_running_loop().create_future()
        self.calls.append((params, future))
        return await future

    def resolve(self, index: int, page: ListingPage) -> None:
        self.calls[index][1].set_result(page)

    def fail(self, index: int, error: Exception) -> None:
        self.calls[index][1].set_exception(error)


class RecordingFetcher:
    """Fetch boundary delegating to a search service and recording snapshots."""

    def __init__(self, service, error: Optional[Exception] = None):
        self.service = service
        self.error = error
        self.calls: list[FacetParameters] = []

    async def __call__(self, params: FacetParameters) -> ListingPage:
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return await self.service.search(params)


def page_of(titles: list[str], total: Optional[int] = None, page: int = 1, page_size: int = 9) -> ListingPage:
    """Build a ListingPage holding records with the given titles."""
    return ListingPage(
        records=[{"id": str(index), "title": title, "city": "Kochi"} for index, title in enumerate(titles)],
        total=len(titles) if total is None else total,
        page=page,
        page_size=page_size,
    )


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)
