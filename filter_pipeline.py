"""
Derives the page of catalog items to display from a cached list.

view() is a pure function: search, brand filter, sort, then paginate, each
stage working on the previous stage's output. CatalogFilters owns the
parameters for one list page and applies the page-reset rules when the
user edits them.
"""

import locale
import logging
import math
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from PySide6.QtCore import QObject, Signal

from constants import ALL_BRANDS
from models.catalog_item import CatalogItem
from models.query import CatalogPage, SortDirection, SortKey, ViewParams

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("model", "brand", "serial_number", "branch_name")


def search_matches(item: CatalogItem, query: str) -> bool:
    """Case-insensitive substring match on model, brand, serial and branch."""
    if not query:
        return True
    needle = query.casefold()
    for field in SEARCH_FIELDS:
        value = getattr(item, field, None)
        if value and needle in str(value).casefold():
            return True
    return False


def brand_matches(item: CatalogItem, brand: Optional[str]) -> bool:
    if not brand or brand == ALL_BRANDS:
        return True
    return item.brand == brand


def sort_value(item: CatalogItem, key: SortKey) -> Tuple[Any, ...]:
    value = getattr(item, key.value, None)
    if key.numeric:
        # Missing numbers sort ahead of every number, like an empty string.
        return (0, 0.0) if value is None else (1, float(value))
    return (locale.strxfrm(str(value or "").casefold()),)


def sort_items(
    items: Iterable[CatalogItem], key: SortKey, direction: SortDirection
) -> List[CatalogItem]:
    return sorted(
        items,
        key=lambda item: sort_value(item, key),
        reverse=direction == SortDirection.DESC,
    )


def paginate(items: Sequence[CatalogItem], page: int, page_size: int) -> Tuple[List[CatalogItem], int]:
    """
    Returns the slice for `page` and the page count. An empty list has zero
    pages; a page past the end is empty.
    """
    total_pages = math.ceil(len(items) / page_size)
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), total_pages


def view(items: Iterable[CatalogItem], params: ViewParams) -> CatalogPage:
    filtered = [
        item
        for item in items
        if search_matches(item, params.search) and brand_matches(item, params.brand)
    ]
    ordered = sort_items(filtered, params.sort_key, params.sort_direction)
    page_items, total_pages = paginate(ordered, params.page, params.page_size)
    return CatalogPage(
        items=page_items,
        page=params.page,
        total_pages=total_pages,
        total_count=len(ordered),
    )


def available_brands(items: Iterable[CatalogItem]) -> List[str]:
    """Unique brands for the brand dropdown, sorted."""
    return sorted({item.brand for item in items if item.brand})


class CatalogFilters(QObject):
    """
    The filter, sort and page settings of one list page.

    Changing the search text, the brand or the sort order sends the user back
    to page 1. set_page() takes the page as given.
    """

    params_changed = Signal(object)

    def __init__(self, page_size: Optional[int] = None, parent=None):
        super().__init__(parent)
        self._params = ViewParams() if page_size is None else ViewParams(page_size=page_size)

    @property
    def params(self) -> ViewParams:
        return self._params

    def _update(self, **changes):
        params = self._params.model_copy(update=changes)
        if params == self._params:
            return
        self._params = ViewParams.model_validate(params.model_dump())
        self.params_changed.emit(self._params)

    def set_search(self, text: str):
        self._update(search=text or "", page=1)

    def set_brand(self, brand: Optional[str]):
        self._update(brand=brand or ALL_BRANDS, page=1)

    def set_sort(self, key, direction=SortDirection.ASC):
        self._update(sort_key=SortKey(key), sort_direction=SortDirection(direction), page=1)

    def set_page(self, page: int):
        self._update(page=page)

    def reset(self):
        """Clears search and brand, keeps the sort order."""
        self._update(search="", brand=ALL_BRANDS, page=1)

    def view(self, items: Iterable[CatalogItem]) -> CatalogPage:
        return view(items, self._params)
