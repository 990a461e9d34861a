import logging
import math
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type, Union

import requests
from pydantic import ValidationError

from adapters.session import AuthSession
from constants import REQUEST_TIMEOUT, USER_AGENT, CatalogKind, ErrorText
from models.catalog_item import Accessory, Camera, CatalogItem
from models.list_response import PagedResponse, decode_list_response, decode_paged, items_of
from models.query import RemoteQuery

logger = logging.getLogger(__name__)

MediaFile = Union[str, Path]


class CatalogApiError(Exception):
    """A catalog request failed; the message is safe to show to the user."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotAuthenticatedError(CatalogApiError):
    def __init__(self):
        super().__init__(ErrorText.NOT_AUTHENTICATED.value)


def _form_name(field: str) -> str:
    """brand -> Brand, serial_number -> SerialNumber, baseDailyRate -> BaseDailyRate"""
    return "".join(word[:1].upper() + word[1:] for word in field.split("_"))


def _form_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_form_data(
    fields: Dict[str, Any],
    item_id: Optional[str] = None,
    remove_media_ids: Iterable[str] = (),
) -> List[Tuple[str, str]]:
    """
    Flattens scalar fields into multipart form pairs with the backend's
    PascalCase names. None and NaN values are left out.
    """
    data: List[Tuple[str, str]] = []
    if item_id is not None:
        data.append(("Id", item_id))
    for field, value in fields.items():
        text = _form_value(value)
        if text is not None:
            data.append((_form_name(field), text))
    data.extend(("RemoveMediaIds", media_id) for media_id in remove_media_ids if media_id)
    return data


class CatalogApi:
    """
    Client for one entity kind of the rental backend. Subclasses only pick
    the kind and the item model.
    """

    kind: CatalogKind
    item_model: Type[CatalogItem]

    def __init__(self, session: AuthSession) -> None:
        self.session = session
        self.headers = {
            "Accept": "application/json, */*",
            "User-Agent": USER_AGENT,
        }

    @property
    def base_url(self) -> str:
        return self.kind.base_url

    def _headers(self, authenticated: bool = True) -> Dict[str, str]:
        if authenticated and not self.session.is_authenticated:
            raise NotAuthenticatedError()
        headers = self.headers.copy()
        headers.update(self.session.auth_headers())
        return headers

    def _send(self, call, url: str, action: str, **kwargs) -> requests.Response:
        try:
            r = call(url=url, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{action} failed: {e}")
            raise CatalogApiError(f"{action} failed: {e}") from e
        if not 200 <= r.status_code < 300:
            message = self._error_message(r, f"{action} failed with status {r.status_code}")
            logger.error(f"API error ({r.status_code}) on {url}: {message}")
            raise CatalogApiError(message, r.status_code)
        return r

    @staticmethod
    def _error_message(r: requests.Response, fallback: str) -> str:
        try:
            data = r.json()
            if isinstance(data, dict) and data.get("message"):
                return str(data["message"])
        except ValueError:
            pass
        text = (r.text or "").strip()
        return text or fallback

    @staticmethod
    def _json_or_none(r: requests.Response) -> Any:
        if "application/json" not in r.headers.get("Content-Type", ""):
            return None
        try:
            return r.json()
        except ValueError:
            return None

    def _parse_item(self, data: Any) -> Optional[CatalogItem]:
        if not isinstance(data, dict):
            return None
        try:
            return self.item_model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Response is not a usable {self.item_model.__name__}: {e}")
            return None

    # --- Reads ---

    def list_by_owner(self) -> Any:
        """Fetches the signed-in owner's items. Returns the raw JSON payload."""
        r = self._send(
            requests.get,
            f"{self.base_url}/{self.kind.owner_path}",
            f"Loading {self.kind.value} list",
            headers=self._headers(),
        )
        payload = self._json_or_none(r)
        if payload is None:
            logger.warning(f"{self.kind.value} list response was not JSON.")
        return payload

    def list_filtered(self, query: RemoteQuery) -> PagedResponse:
        r = self._send(
            requests.get,
            self.base_url,
            f"Loading {self.kind.value} listing",
            headers=self._headers(authenticated=False),
            params=query.to_params(),
        )
        paged = decode_paged(self._json_or_none(r))
        if paged is None:
            raise CatalogApiError(f"Unexpected {self.kind.value} listing response.")
        return paged

    def get_by_id(self, item_id: str) -> CatalogItem:
        r = self._send(
            requests.get,
            f"{self.base_url}/{item_id}",
            f"Loading {self.kind.value} {item_id}",
            headers=self._headers(authenticated=False),
        )
        item = self._parse_item(self._json_or_none(r))
        if item is None:
            raise CatalogApiError(f"Unexpected {self.kind.value} response for {item_id}.")
        return item

    def compare(self, item_ids: Sequence[str]) -> List[CatalogItem]:
        if not item_ids:
            return []
        r = self._send(
            requests.get,
            f"{self.base_url}/compare",
            f"Comparing {self.kind.value} items",
            headers=self._headers(authenticated=False),
            params=[("ids", item_id) for item_id in item_ids],
        )
        return items_of(decode_list_response(self._json_or_none(r)), self.item_model)

    # --- Writes ---

    def create(
        self, fields: Dict[str, Any], media_files: Sequence[MediaFile] = ()
    ) -> Optional[CatalogItem]:
        """
        Creates an item. Returns the created item, or None when the backend
        answers without a usable body.
        """
        headers = self._headers()
        with ExitStack() as stack:
            files = self._open_media(stack, media_files)
            r = self._send(
                requests.post,
                self.base_url,
                f"Creating {self.kind.value}",
                headers=headers,
                data=build_form_data(fields),
                files=files or None,
            )
        created = self._parse_item(self._json_or_none(r))
        logger.info(f"Created {self.kind.value} {created.id if created else '(no body)'}")
        return created

    def update(
        self,
        item_id: str,
        fields: Dict[str, Any],
        media_files: Sequence[MediaFile] = (),
        remove_media_ids: Sequence[str] = (),
    ) -> Optional[CatalogItem]:
        """
        Updates an item. Returns the backend's echo of the updated item, or
        None when it does not send one back.
        """
        headers = self._headers()
        with ExitStack() as stack:
            files = self._open_media(stack, media_files)
            r = self._send(
                requests.put,
                self.base_url,
                f"Updating {self.kind.value} {item_id}",
                headers=headers,
                data=build_form_data(fields, item_id, remove_media_ids),
                files=files or None,
            )
        updated = self._parse_item(self._json_or_none(r))
        logger.info(f"Updated {self.kind.value} {item_id}")
        return updated

    def delete(self, item_id: str):
        self._send(
            requests.delete,
            f"{self.base_url}/{item_id}",
            f"Deleting {self.kind.value} {item_id}",
            headers=self._headers(),
        )
        logger.info(f"Deleted {self.kind.value} {item_id}")

    @staticmethod
    def _open_media(stack: ExitStack, media_files: Sequence[MediaFile]) -> list:
        files = []
        for media_file in media_files:
            path = Path(media_file)
            handle = stack.enter_context(path.open("rb"))
            files.append(("MediaFiles", (path.name, handle)))
        return files


class CameraApi(CatalogApi):
    kind = CatalogKind.CAMERA
    item_model = Camera


class AccessoryApi(CatalogApi):
    kind = CatalogKind.ACCESSORY
    item_model = Accessory
