"""
Read-only join of the comparison selection against a catalog cache.

The selection and the cache are not kept in sync: an id may point at an
item that has since been deleted. Such ids are skipped rather than treated
as errors.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from adapters.catalog_api import CatalogApi, CatalogApiError
from catalog_cache import EntityCache
from constants import MISSING_SPEC_VALUE, ErrorText
from models.catalog_item import CatalogItem
from selection import SelectionSet

logger = logging.getLogger(__name__)

SpecRow = Tuple[str, List[str]]


def resolve_selection(selection: SelectionSet, cache: EntityCache) -> List[CatalogItem]:
    items = []
    for item_id in selection:
        item = cache.get(item_id)
        if item is None:
            logger.debug(f"Selected {cache.kind} {item_id} is not cached; skipping.")
            continue
        items.append(item)
    return items


def spec_rows(items: Sequence[CatalogItem]) -> List[SpecRow]:
    """
    One row per spec key found on any item, in first-seen order, with the
    value of each item (or a placeholder) in item order.
    """
    specs = [item.specs for item in items]
    labels: Dict[str, None] = {}
    for spec in specs:
        labels.update(dict.fromkeys(spec))
    return [
        (label, [spec.get(label, MISSING_SPEC_VALUE) for spec in specs])
        for label in labels
    ]


class ComparisonView:
    """
    Items for the comparison table. Ids the cache does not know are looked
    up once through the API's compare endpoint.
    """

    def __init__(
        self,
        selection: SelectionSet,
        cache: EntityCache,
        api: Optional[CatalogApi] = None,
    ):
        self.selection = selection
        self.cache = cache
        self.api = api
        self.error: Optional[str] = None
        self._resolved: Optional[List[CatalogItem]] = None

    def items(self) -> List[CatalogItem]:
        self.error = None
        found = {item.id: item for item in resolve_selection(self.selection, self.cache)}
        missing = [item_id for item_id in self.selection if item_id not in found]
        if missing and self.api is not None:
            try:
                for item in self.api.compare(missing):
                    found.setdefault(item.id, item)
            except CatalogApiError as e:
                logger.warning(f"Could not fetch {len(missing)} compared items: {e}")
                self.error = ErrorText.COMPARE_FAILED.value
        self._resolved = [found[item_id] for item_id in self.selection if item_id in found]
        return list(self._resolved)

    def rows(self, items: Optional[Sequence[CatalogItem]] = None) -> List[SpecRow]:
        """
        Spec rows for `items`, or for the result of the last items() call.
        Only resolves the selection itself when items() has not run yet.
        """
        if items is None:
            items = self._resolved if self._resolved is not None else self.items()
        return spec_rows(items)
