"""
Parameter and result models for listing the catalog, both the local
filter pipeline and the backend's filtered listing endpoint.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from constants import ALL_BRANDS, DEFAULT_PAGE_SIZE
from .catalog_item import CatalogItem


class SortKey(str, Enum):
    """Fields a catalog list can be sorted by."""

    def __new__(cls, value, numeric):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.numeric = numeric
        return obj

    MODEL = ("model", False)
    BRAND = ("brand", False)
    SERIAL_NUMBER = ("serial_number", False)
    VARIANT = ("variant", False)
    BRANCH_NAME = ("branch_name", False)
    BASE_DAILY_RATE = ("base_daily_rate", True)
    ESTIMATED_VALUE = ("estimated_value_vnd", True)

    @property
    def api_name(self) -> str:
        head, *rest = self.value.split("_")
        return head + "".join(word.capitalize() for word in rest)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ViewParams(BaseModel):
    """Search, filter, sort and page settings for one catalog list view."""

    search: str = ""
    brand: str = ALL_BRANDS
    sort_key: SortKey = SortKey.MODEL
    sort_direction: SortDirection = SortDirection.ASC
    page: int = Field(1, ge=1, description="1-based page number")
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1)


class CatalogPage(BaseModel):
    items: List[CatalogItem] = Field(default_factory=list)
    page: int = 1
    total_pages: int = 0
    total_count: int = 0


class RemoteQuery(BaseModel):
    """Query string for the backend's filtered listing endpoint."""

    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1)
    sort_key: Optional[SortKey] = None
    sort_direction: Optional[SortDirection] = None
    brand: Optional[str] = None
    model: Optional[str] = None

    def to_params(self) -> Dict[str, str]:
        params = {"page": str(self.page), "pageSize": str(self.page_size)}
        if self.sort_key:
            params["sortBy"] = self.sort_key.api_name
        if self.sort_direction:
            params["sortDir"] = self.sort_direction.value
        if self.brand and self.brand != ALL_BRANDS:
            params["brand"] = self.brand
        if self.model:
            params["model"] = self.model
        return params
