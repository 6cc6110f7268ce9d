"""Facet parameter models - the canonical filter/sort/page state of a property search."""

import math
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from propertysearch.utils.config import SearchConfig
from propertysearch.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

DEFAULT_PAGE_SIZE = SearchConfig.API_PAGE_SIZE
LISTING_PAGE_SIZE = SearchConfig.LISTING_PAGE_SIZE
MAX_PAGE_SIZE = SearchConfig.MAX_PAGE_SIZE


class TransactionType(str, Enum):
    """Selling type of a listing."""
    SALE = "Sale"
    RENT = "Rent"


class ListingStatus(str, Enum):
    """Lifecycle status of a listing."""
    ACTIVE = "active"
    PENDING = "pending"
    SOLD = "sold"
    RENTED = "rented"


class SortField(str, Enum):
    """Sortable columns (whitelist)."""
    CREATED_AT = "created_at"
    PRICE = "price"
    AREA_SIZE = "area_size"
    TITLE = "title"


class SortDirection(str, Enum):
    """Sort direction."""
    ASC = "asc"
    DESC = "desc"


DEFAULT_LISTING_STATUS = ListingStatus.ACTIVE

SORT_FIELD_ALIASES = {
    "created_at": SortField.CREATED_AT,
    "createdat": SortField.CREATED_AT,
    "price": SortField.PRICE,
    "area_size": SortField.AREA_SIZE,
    "areasize": SortField.AREA_SIZE,
    "title": SortField.TITLE,
}

# Facets whose change sends the user back to the first page
PAGE_RESET_FIELDS = (
    "free_text",
    "property_category",
    "transaction_type",
    "locality",
    "bedroom_count",
    "listing_state",
    "is_featured",
    "price_min",
    "price_max",
    "sort_field",
    "sort_direction",
)


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        pass
    number = _to_float(value)
    return int(number) if number is not None else None


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if not isinstance(value, (int, float)) else float(value)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _degraded(info: ValidationInfo, value: Any, fallback: Any) -> Any:
    logger.debug(
        "Facet value degraded to default",
        facet=info.field_name,
        raw_value=str(value)[:50],
        fallback=str(fallback)
    )
    return fallback


class FacetParameters(BaseModel):
    """
    Serializable filter state of a property search.

    Malformed values never raise: each field degrades to its nearest safe
    default. An inverted price range is representable and is rejected by the
    query builder instead.
    """
    model_config = ConfigDict(frozen=True)

    free_text: Optional[str] = Field(None, description="Substring search target")
    property_category: Optional[str] = Field(None, description="User-facing property type token")
    transaction_type: Optional[TransactionType] = Field(None, description="Sale or Rent")
    locality: Optional[str] = Field(None, description="City substring")
    bedroom_count: Optional[int] = Field(None, ge=0, description="BHK count")
    listing_state: Optional[ListingStatus] = Field(
        None,
        description="Lifecycle filter; None means the default (active)"
    )
    is_featured: Optional[bool] = Field(None, description="Featured flag filter")
    price_min: Optional[float] = Field(None, ge=0, description="Minimum price (inclusive)")
    price_max: Optional[float] = Field(None, ge=0, description="Maximum price (inclusive)")
    sort_field: SortField = Field(default=SortField.CREATED_AT, description="Sort column")
    sort_direction: SortDirection = Field(default=SortDirection.DESC, description="Sort direction")
    page: int = Field(default=1, ge=1, description="1-based page number")
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0, le=MAX_PAGE_SIZE, description="Records per page")

    @field_validator("free_text", "property_category", "locality", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("transaction_type", mode="before")
    @classmethod
    def _coerce_transaction_type(cls, value: Any, info: ValidationInfo) -> Optional[TransactionType]:
        if value is None or isinstance(value, TransactionType):
            return value
        normalized = str(value).strip().lower()
        if not normalized:
            return None
        for member in TransactionType:
            if member.value.lower() == normalized:
                return member
        return _degraded(info, value, None)

    @field_validator("listing_state", mode="before")
    @classmethod
    def _coerce_listing_state(cls, value: Any, info: ValidationInfo) -> Optional[ListingStatus]:
        if value is None:
            return None
        normalized = str(value.value if isinstance(value, ListingStatus) else value).strip().lower()
        if not normalized:
            return None
        try:
            status = ListingStatus(normalized)
        except ValueError:
            return _degraded(info, value, None)
        # An explicit default is indistinguishable from an omitted one
        return None if status == DEFAULT_LISTING_STATUS else status

    @field_validator("is_featured", mode="before")
    @classmethod
    def _coerce_featured(cls, value: Any, info: ValidationInfo) -> Optional[bool]:
        if value is None or isinstance(value, bool):
            return value
        normalized = str(value).strip().lower()
        if normalized in ("true", "1", "yes"):
            return True
        if normalized in ("false", "0", "no"):
            return False
        if not normalized:
            return None
        return _degraded(info, value, None)

    @field_validator("bedroom_count", mode="before")
    @classmethod
    def _coerce_bedrooms(cls, value: Any, info: ValidationInfo) -> Optional[int]:
        if value is None or value == "":
            return None
        number = _to_int(value)
        if number is None or number < 0:
            return _degraded(info, value, None)
        return number

    @field_validator("price_min", "price_max", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any, info: ValidationInfo) -> Optional[float]:
        if value is None or value == "":
            return None
        number = _to_float(value)
        if number is None or number < 0:
            return _degraded(info, value, None)
        return number

    @field_validator("sort_field", mode="before")
    @classmethod
    def _coerce_sort_field(cls, value: Any, info: ValidationInfo) -> SortField:
        if isinstance(value, SortField):
            return value
        field = SORT_FIELD_ALIASES.get(str(value).strip().lower()) if value is not None else None
        if field is None:
            return _degraded(info, value, SortField.CREATED_AT)
        return field

    @field_validator("sort_direction", mode="before")
    @classmethod
    def _coerce_sort_direction(cls, value: Any, info: ValidationInfo) -> SortDirection:
        if isinstance(value, SortDirection):
            return value
        normalized = str(value).strip().lower() if value is not None else ""
        if normalized == "asc":
            return SortDirection.ASC
        if normalized != "desc":
            return _degraded(info, value, SortDirection.DESC)
        return SortDirection.DESC

    @field_validator("page", mode="before")
    @classmethod
    def _coerce_page(cls, value: Any, info: ValidationInfo) -> int:
        number = _to_int(value)
        if number is None or number < 1:
            return _degraded(info, value, 1)
        return number

    @field_validator("page_size", mode="before")
    @classmethod
    def _coerce_page_size(cls, value: Any, info: ValidationInfo) -> int:
        number = _to_int(value)
        if number is None or number < 1:
            return _degraded(info, value, DEFAULT_PAGE_SIZE)
        return min(number, MAX_PAGE_SIZE)

    @property
    def effective_listing_state(self) -> ListingStatus:
        """Lifecycle status the query filters on when the filter applies."""
        return self.listing_state or DEFAULT_LISTING_STATUS

    @property
    def has_active_filters(self) -> bool:
        """Whether any filtering facet differs from its default."""
        return any(
            getattr(self, name) is not None
            for name in PAGE_RESET_FIELDS
            if name not in ("sort_field", "sort_direction")
        )

    def with_changes(self, **changes: Any) -> "FacetParameters":
        """Return a validated copy with the given fields replaced."""
        data = self.model_dump()
        data.update(changes)
        return FacetParameters.model_validate(data)

    def differs_outside_page(self, other: "FacetParameters") -> bool:
        """Whether any page-resetting facet differs from ``other``."""
        return any(getattr(self, name) != getattr(other, name) for name in PAGE_RESET_FIELDS)
