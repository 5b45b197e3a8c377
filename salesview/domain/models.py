"""
Domain models for SalesView.

Request-side value objects (`FilterSpec`, `PageRequest`) are frozen pydantic
models built once at the boundary by `PageRequest.from_query`, which coerces raw
query parameters and never raises. Response-side shapes are either frozen
pydantic models with camelCase aliases (`PaginationMeta`, `FilterOptions`) or
TypedDicts for plain JSON-ready rows.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple, TypedDict

from pydantic import BaseModel, Field


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Any, default: Optional["SortDirection"] = None) -> "SortDirection":
        """Ascending only when asked for; anything unrecognised uses the default."""
        text = str(value).strip().lower() if value is not None else ""
        if text == cls.ASC.value:
            return cls.ASC
        if text == cls.DESC.value:
            return cls.DESC
        return default or cls.DESC


def _to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _split_csv(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, (list, tuple)):
        parts = [str(item) for item in value]
    else:
        parts = str(value).split(",")
    return tuple(part.strip() for part in parts if part.strip())


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class FilterSpec(BaseModel):
    """
    Selected facet values and ranges. Empty facets mean "no restriction".
    """

    customer_region: Tuple[str, ...] = Field((), description="Customer regions (IN).")
    gender: Tuple[str, ...] = Field((), description="Genders (IN).")
    product_category: Tuple[str, ...] = Field((), description="Product categories (IN).")
    tags: Tuple[str, ...] = Field((), description="Tags (case-insensitive substring, OR).")
    payment_method: Tuple[str, ...] = Field((), description="Payment methods (IN).")
    min_age: Optional[int] = Field(None, description="Inclusive lower age bound.")
    max_age: Optional[int] = Field(None, description="Inclusive upper age bound.")
    start_date: Optional[str] = Field(None, description="Inclusive lower ISO date bound.")
    end_date: Optional[str] = Field(None, description="Inclusive upper ISO date bound.")

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not (
            self.customer_region
            or self.gender
            or self.product_category
            or self.tags
            or self.payment_method
            or self.min_age is not None
            or self.max_age is not None
            or self.start_date
            or self.end_date
        )

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "FilterSpec":
        return cls(
            customer_region=_split_csv(params.get("customerRegion")),
            gender=_split_csv(params.get("gender")),
            product_category=_split_csv(params.get("productCategory")),
            tags=_split_csv(params.get("tags")),
            payment_method=_split_csv(params.get("paymentMethod")),
            min_age=_to_int(params.get("minAge")),
            max_age=_to_int(params.get("maxAge")),
            start_date=_to_text(params.get("startDate")),
            end_date=_to_text(params.get("endDate")),
        )


class PageRequest(BaseModel):
    """
    One page of the sales listing: position, size, ordering, filters and search.

    `cursor` carries the last seen identifier for keyset paging; `optimized`
    selects the aggregated-window path for deep pages.
    """

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    cursor: Optional[int] = None
    sort_by: str = "id"
    sort_order: SortDirection = SortDirection.DESC
    search: str = ""
    filters: FilterSpec = Field(default_factory=FilterSpec)
    optimized: bool = False

    model_config = {"frozen": True}

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_query(
        cls,
        params: Mapping[str, Any],
        *,
        default_limit: int = 10,
        default_sort_by: str = "id",
        default_sort_order: SortDirection = SortDirection.DESC,
        optimized: bool = False,
    ) -> "PageRequest":
        """
        Coerce raw query parameters into a request.

        Malformed numbers fall back to safe defaults instead of raising.
        """
        page = _to_int(params.get("page"), 1)
        limit = _to_int(params.get("limit"), default_limit)
        return cls(
            page=page if page >= 1 else 1,
            limit=limit if limit >= 1 else default_limit,
            cursor=_to_int(params.get("lastId")),
            sort_by=_to_text(params.get("sortBy")) or default_sort_by,
            sort_order=SortDirection.parse(params.get("sortOrder"), default_sort_order),
            search=str(params.get("search") or ""),
            filters=FilterSpec.from_query(params),
            optimized=optimized,
        )


class PaginationMeta(BaseModel):
    """
    Pagination metadata; `current_page` is always within `[1, total_pages]`.
    """

    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    total_records: int = Field(..., alias="totalRecords")
    page_size: int = Field(..., alias="pageSize")
    has_next_page: bool = Field(..., alias="hasNextPage")
    has_previous_page: bool = Field(..., alias="hasPreviousPage")

    model_config = {"frozen": True, "populate_by_name": True}

    @classmethod
    def for_page(cls, page: int, total_records: int, page_size: int) -> "PaginationMeta":
        total_pages = max(1, math.ceil(total_records / page_size))
        current = min(max(1, page), total_pages)
        return cls(
            current_page=current,
            total_pages=total_pages,
            total_records=total_records,
            page_size=page_size,
            has_next_page=current < total_pages,
            has_previous_page=current > 1,
        )


class AgeRange(BaseModel):
    min: int = 0
    max: int = 100

    model_config = {"frozen": True}


class FilterOptions(BaseModel):
    """
    Snapshot of filter widget values. Immutable once built.
    """

    customer_regions: Tuple[str, ...] = Field((), alias="customerRegions")
    genders: Tuple[str, ...] = Field((), alias="genders")
    product_categories: Tuple[str, ...] = Field((), alias="productCategories")
    payment_methods: Tuple[str, ...] = Field((), alias="paymentMethods")
    tags: Tuple[str, ...] = Field((), alias="tags")
    age_range: AgeRange = Field(default_factory=AgeRange, alias="ageRange")

    model_config = {"frozen": True, "populate_by_name": True}

    @classmethod
    def empty(cls) -> "FilterOptions":
        return cls()


class ProjectedRecord(TypedDict):
    """Stable response shape of one transaction."""

    id: Optional[int]
    date: Optional[str]
    customerId: Optional[str]
    customerName: Optional[str]
    phoneNumber: Optional[int]
    gender: Optional[str]
    age: Optional[int]
    customerRegion: Optional[str]
    productCategory: Optional[str]
    quantity: Optional[int]
    totalAmount: Any
    productId: Optional[str]
    employeeName: Optional[str]
    paymentMethod: Optional[str]
    tags: Optional[str]


class Page(TypedDict):
    records: List[ProjectedRecord]
    pagination: PaginationMeta


class RangePage(TypedDict):
    records: List[ProjectedRecord]
    totalRecords: int
    lastId: Optional[int]


__all__ = [
    "SortDirection",
    "FilterSpec",
    "PageRequest",
    "PaginationMeta",
    "AgeRange",
    "FilterOptions",
    "ProjectedRecord",
    "Page",
    "RangePage",
]
