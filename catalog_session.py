import logging
from typing import Optional

from adapters.catalog_api import AccessoryApi, CameraApi
from adapters.session import AuthSession
from catalog_cache import EntityCache
from list_mutators import CatalogEditor, ConfirmDelete, always_confirm
from selection import SelectionSet

logger = logging.getLogger(__name__)


class CatalogSession:
    """
    Catalog state for one signed-in user.

    Create one after login and hand its members to the pages that need
    them; call close() on logout to drop the credential and every cached
    list and selection.
    """

    def __init__(
        self,
        auth: Optional[AuthSession] = None,
        confirm_delete: ConfirmDelete = always_confirm,
    ):
        self.auth = auth if auth is not None else AuthSession.from_env()

        self.camera_api = CameraApi(self.auth)
        self.accessory_api = AccessoryApi(self.auth)

        self.cameras = EntityCache(
            "camera", CameraApi.item_model, self.camera_api.list_by_owner, self.auth
        )
        self.accessories = EntityCache(
            "accessory", AccessoryApi.item_model, self.accessory_api.list_by_owner, self.auth
        )
        self.selection = SelectionSet()

        self.camera_editor = CatalogEditor(self.camera_api, self.cameras, confirm_delete)
        self.accessory_editor = CatalogEditor(
            self.accessory_api, self.accessories, confirm_delete
        )

    def close(self):
        logger.info("Closing catalog session.")
        self.auth.clear()
        self.cameras.reset()
        self.accessories.reset()
        self.selection.clear()

    def __enter__(self) -> "CatalogSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
