"""Query description models produced by the query builder."""

from enum import Enum
from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class CategoryResolutionKind(str, Enum):
    """How a property category token was resolved."""
    EXACT_WITHIN_SET = "exact_within_set"
    EXPANDED_SET = "expanded_set"
    DIRECT_LOOKUP = "direct_lookup"
    FALLBACK = "fallback"


class CategoryResolution(BaseModel):
    """Backing property_type values a category token stands for."""
    model_config = ConfigDict(frozen=True)

    kind: CategoryResolutionKind
    token: str = Field(..., description="Normalized input token")
    values: tuple[str, ...] = Field(..., min_length=1, description="Backing property_type values")
    matched_phrase: Optional[str] = Field(None, description="Phrase the rule matched")

    @property
    def is_single(self) -> bool:
        return len(self.values) == 1


class EqualsClause(BaseModel):
    """field = value"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["equals"] = "equals"
    field: str
    value: Union[bool, int, float, str]


class InClause(BaseModel):
    """field IN values"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["in"] = "in"
    field: str
    values: tuple[str, ...]


class ContainsClause(BaseModel):
    """Case-insensitive substring match on one field."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["contains"] = "contains"
    field: str
    text: str


class RangeClause(BaseModel):
    """Inclusive numeric bounds; either side may be open."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["range"] = "range"
    field: str
    gte: Optional[float] = None
    lte: Optional[float] = None


class AnyOfContainsClause(BaseModel):
    """Case-insensitive substring match on any of several fields (OR group)."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["any_of_contains"] = "any_of_contains"
    fields: tuple[str, ...]
    text: str


Clause = Union[EqualsClause, InClause, ContainsClause, RangeClause, AnyOfContainsClause]


class SortSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    descending: bool = True


class QueryDescription(BaseModel):
    """
    Normalized, validated description of one listing search.

    Predicates are AND-combined in order; an AnyOfContainsClause is itself an
    OR across its fields.
    """
    model_config = ConfigDict(frozen=True)

    predicates: tuple[Clause, ...] = ()
    sort: SortSpec
    offset: int = Field(..., ge=0)
    limit: int = Field(..., gt=0)
    page: int = Field(..., ge=1)

    @property
    def range_end(self) -> int:
        """Inclusive index of the last row in the window."""
        return self.offset + self.limit - 1
