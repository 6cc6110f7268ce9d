"""Listing models."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from propertysearch.utils.images import normalize_images


class ListingRecord(BaseModel):
    """Real estate listing as stored in the properties table."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(None, description="Listing ID")
    title: Optional[str] = Field(None, description="Listing title")
    property_type: Optional[str] = Field(None, description="Backing category, e.g. Villa, Plot, Commercial Land")
    bhk: Optional[int] = Field(None, description="Bedroom count")
    baths: Optional[int] = None
    floors: Optional[int] = None
    selling_type: Optional[str] = Field(None, description="Sale or Rent")
    price: Optional[float] = Field(None, description="Asking price")
    area_size: Optional[float] = None
    area_unit: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    content: Optional[str] = Field(None, description="Listing description")
    images: list[str] = Field(default_factory=list, description="Image URLs")
    status: Optional[str] = Field(None, description="Lifecycle status: active, pending, sold, rented")
    featured: bool = Field(default=False, description="Featured on the home page")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("images", mode="before")
    @classmethod
    def _normalize_images(cls, value: Any) -> list[str]:
        return normalize_images(value)

    @field_validator("featured", mode="before")
    @classmethod
    def _coerce_featured(cls, value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes", "t")
        return bool(value)

    @property
    def cover_image(self) -> Optional[str]:
        """First image URL, if any."""
        return self.images[0] if self.images else None
