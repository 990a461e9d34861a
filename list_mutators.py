import logging
from typing import Any, Callable, Dict, Optional, Sequence, Union

from adapters.catalog_api import CatalogApi, MediaFile
from catalog_cache import EntityCache
from models.catalog_item import CatalogItem

logger = logging.getLogger(__name__)

# Asked before a delete; receives the cached item (or the bare id when the
# item is not cached) and returns whether the user confirmed.
ConfirmDelete = Callable[[Union[CatalogItem, str]], bool]


def always_confirm(_target) -> bool:
    return True


class CatalogEditor:
    """
    Sends create/update/delete requests and brings the cache in line
    afterwards without refetching when the response makes that safe.

    Request failures propagate as CatalogApiError so the form that triggered
    them can show the message; the cache is only touched after a request
    has succeeded.
    """

    def __init__(
        self,
        api: CatalogApi,
        cache: EntityCache,
        confirm_delete: ConfirmDelete = always_confirm,
    ):
        self.api = api
        self.cache = cache
        self.confirm_delete = confirm_delete

    def create(
        self, fields: Dict[str, Any], media_files: Sequence[MediaFile] = ()
    ) -> Optional[CatalogItem]:
        created = self.api.create(fields, media_files)
        # Server-generated fields are unknown locally, so reload the list.
        self.cache.force_refresh()
        return created

    def update(
        self,
        item_id: str,
        fields: Dict[str, Any],
        media_files: Sequence[MediaFile] = (),
        remove_media_ids: Sequence[str] = (),
    ) -> Optional[CatalogItem]:
        updated = self.api.update(item_id, fields, media_files, remove_media_ids)
        if updated is not None and updated.id == item_id:
            if self.cache.apply_local_update(item_id, updated):
                return updated
        logger.info(f"No usable echo for {self.cache.kind} {item_id}; refreshing list.")
        self.cache.force_refresh()
        return updated

    def delete(self, item_id: str) -> bool:
        """
        Deletes after confirmation. Returns False when the user declined.
        """
        target = self.cache.get(item_id) or item_id
        if not self.confirm_delete(target):
            logger.info(f"Delete of {self.cache.kind} {item_id} cancelled.")
            return False
        self.api.delete(item_id)
        self.cache.apply_local_removal(item_id)
        return True
