"""Search result models."""

import math
from typing import Any, Optional
from pydantic import BaseModel, Field

from propertysearch.models.listing import ListingRecord


def compute_total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for ``total`` records."""
    if page_size <= 0 or total <= 0:
        return 0
    return math.ceil(total / page_size)


class ListingPage(BaseModel):
    """One page of search results plus the pre-pagination total."""
    records: list[ListingRecord] = Field(default_factory=list)
    total: int = Field(default=0, ge=0, description="Matching records before pagination")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(..., gt=0)
    store_unavailable: bool = Field(default=False, description="Backing store unreachable or unconfigured")
    message: Optional[str] = None

    @property
    def total_pages(self) -> int:
        return compute_total_pages(self.total, self.page_size)

    @classmethod
    def empty(
        cls,
        page: int,
        page_size: int,
        message: Optional[str] = None,
        store_unavailable: bool = False
    ) -> "ListingPage":
        return cls(
            records=[],
            total=0,
            page=page,
            page_size=page_size,
            store_unavailable=store_unavailable,
            message=message,
        )

    def to_response(self) -> dict[str, Any]:
        """Render the JSON body served to the site."""
        body: dict[str, Any] = {
            "properties": [record.model_dump(mode="json") for record in self.records],
            "total": self.total,
            "page": self.page,
            "limit": self.page_size,
            "totalPages": self.total_pages,
        }
        if self.message:
            body["message"] = self.message
        return body
