"""
Defines the shapes a list endpoint can answer with, and one decoder per shape.

The backend is not consistent: owner-scoped endpoints return a bare JSON
array, some builds wrap it in an object, and the filtered listing returns a
paged envelope. Anything else decodes to UnknownShape so callers can render
an empty state instead of failing.
"""

import logging
from typing import Any, Callable, List, Optional, Sequence, Type, TypeVar, Union

from first import first
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from constants import LIST_ENVELOPE_KEYS
from .catalog_item import CatalogItem

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT", bound=CatalogItem)


class BareList(BaseModel):
    items: List[Any]


class Envelope(BaseModel):
    key: str
    items: List[Any]


class PagedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    items: List[Any]


class UnknownShape(BaseModel):
    payload: Any = None

    @property
    def items(self) -> List[Any]:
        return []


ListResponse = Union[PagedResponse, Envelope, BareList, UnknownShape]


def decode_paged(payload: Any) -> Optional[PagedResponse]:
    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        return None
    if not all(key in payload for key in ("page", "pageSize", "total")):
        return None
    try:
        return PagedResponse.model_validate(payload)
    except ValidationError:
        return None


def decode_envelope(payload: Any) -> Optional[Envelope]:
    if not isinstance(payload, dict):
        return None
    key = first(LIST_ENVELOPE_KEYS, key=lambda k: isinstance(payload.get(k), list))
    if key is None:
        return None
    return Envelope(key=key, items=payload[key])


def decode_bare_list(payload: Any) -> Optional[BareList]:
    if not isinstance(payload, list):
        return None
    return BareList(items=payload)


DECODERS: Sequence[Callable[[Any], Optional[BaseModel]]] = (
    decode_paged,
    decode_envelope,
    decode_bare_list,
)


def decode_list_response(payload: Any) -> ListResponse:
    """Decodes a raw JSON payload into the first list shape that fits."""
    for decoder in DECODERS:
        response = decoder(payload)
        if response is not None:
            return response
    return UnknownShape(payload=payload)


def items_of(response: ListResponse, item_model: Type[ItemT]) -> List[ItemT]:
    """
    Validates the raw entries of a decoded response into item models.
    Entries that do not validate are skipped with a warning.
    """
    items: List[ItemT] = []
    for raw in response.items:
        if isinstance(raw, item_model):
            items.append(raw)
            continue
        try:
            items.append(item_model.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Failed to parse {item_model.__name__} entry: {e}")
    return items
