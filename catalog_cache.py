import logging
from typing import Any, Callable, List, Optional, Tuple, Type

from PySide6.QtCore import QObject, Signal, Slot

from adapters.session import AuthSession
from constants import ErrorText
from models.catalog_item import CatalogItem
from models.list_response import UnknownShape, decode_list_response, items_of

logger = logging.getLogger(__name__)


class EntityCache(QObject):
    """
    Last-known list of one entity kind, plus loading and error state.

    Once a fetch has succeeded with a non-empty list, ensure_loaded() keeps
    serving it until force_refresh() or reset(); there is no time-based
    expiry. Read failures never raise: they land in `error` and the previous
    list stays on display.

    Every fetch is numbered. A response that arrives after a newer fetch was
    issued is dropped, so the list always reflects the most recent request.
    """

    items_changed = Signal(list)
    loading_changed = Signal(bool)
    error_changed = Signal(str)

    def __init__(
        self,
        kind: str,
        item_model: Type[CatalogItem],
        fetch_fn: Callable[[], Any],
        session: AuthSession,
        parent=None,
    ):
        super().__init__(parent)
        self._kind = kind
        self._item_model = item_model
        self._fetch_fn = fetch_fn
        self._session = session

        self._items: List[CatalogItem] = []
        self._has_fetched = False
        self._loading = False
        self._error: Optional[str] = None
        self._last_seq = 0

    # --- State ---

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def fetch_fn(self) -> Callable[[], Any]:
        return self._fetch_fn

    @property
    def items(self) -> Tuple[CatalogItem, ...]:
        return tuple(self._items)

    @property
    def has_fetched(self) -> bool:
        return self._has_fetched

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_fresh(self) -> bool:
        return self._has_fetched and bool(self._items)

    def get(self, item_id: str) -> Optional[CatalogItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    # --- Loading ---

    def ensure_loaded(self) -> bool:
        """
        Loads the list unless a previous fetch already filled it.
        Returns True if a fetch was attempted.
        """
        if self.is_fresh:
            logger.debug(f"{self._kind} cache hit ({len(self._items)} items).")
            return False
        self._run_fetch()
        return True

    def force_refresh(self) -> bool:
        """Fetches the list regardless of what is cached."""
        self._run_fetch()
        return True

    def _run_fetch(self):
        seq = self.begin_fetch()
        if seq is None:
            return
        try:
            payload = self._fetch_fn()
        except Exception as e:
            self.fail_fetch(seq, str(e) or ErrorText.LOAD_FAILED.value)
            return
        self.complete_fetch(seq, payload)

    def begin_fetch(self) -> Optional[int]:
        """
        Starts a fetch and returns its sequence number, or None when there
        is no signed-in user. The caller performs the network call and
        reports back through complete_fetch() or fail_fetch().
        """
        self._last_seq += 1
        if not self._session.is_authenticated:
            logger.warning(f"Not loading {self._kind} list: no session credential.")
            self._set_items([])
            self._set_error(ErrorText.NOT_AUTHENTICATED.value)
            self._set_loading(False)
            return None
        logger.info(f"Fetching {self._kind} list (request #{self._last_seq}).")
        self._set_error(None)
        self._set_loading(True)
        return self._last_seq

    @Slot(int, object)
    def complete_fetch(self, seq: int, payload: Any):
        if seq != self._last_seq:
            logger.debug(f"Dropping stale {self._kind} response #{seq} (latest #{self._last_seq}).")
            return
        response = decode_list_response(payload)
        if isinstance(response, UnknownShape):
            logger.warning(
                f"Unexpected {self._kind} list response of type "
                f"{type(payload).__name__}; showing an empty list."
            )
        items = items_of(response, self._item_model)
        logger.info(f"Loaded {len(items)} {self._kind} items.")
        self._has_fetched = True
        self._set_items(items)
        self._set_error(None)
        self._set_loading(False)

    @Slot(int, str)
    def fail_fetch(self, seq: int, message: str):
        if seq != self._last_seq:
            logger.debug(f"Dropping stale {self._kind} failure #{seq}: {message}")
            return
        logger.error(f"Loading {self._kind} list failed: {message}")
        self._set_error(message or ErrorText.LOAD_FAILED.value)
        self._set_loading(False)

    # --- Local mutation ---

    def apply_local_update(self, item_id: str, item: CatalogItem) -> bool:
        """
        Replaces the item with `item_id` in place, keeping its position.
        Returns False when the id is not cached.
        """
        if item.id != item_id:
            raise ValueError(f"Cannot replace {self._kind} {item_id} with {item.id}")
        for index, current in enumerate(self._items):
            if current.id == item_id:
                self._items[index] = item
                self.items_changed.emit(list(self._items))
                return True
        logger.debug(f"Local update skipped: {self._kind} {item_id} not cached.")
        return False

    def apply_local_removal(self, item_id: str) -> bool:
        remaining = [item for item in self._items if item.id != item_id]
        if len(remaining) == len(self._items):
            return False
        self._set_items(remaining)
        return True

    def reset(self):
        """Forgets everything; fetches still in flight become stale."""
        self._last_seq += 1
        self._has_fetched = False
        self._set_items([])
        self._set_error(None)
        self._set_loading(False)

    # --- Notification helpers ---

    def _set_items(self, items: List[CatalogItem]):
        if items == self._items:
            return
        self._items = items
        self.items_changed.emit(list(items))

    def _set_loading(self, loading: bool):
        if loading != self._loading:
            self._loading = loading
            self.loading_changed.emit(loading)

    def _set_error(self, error: Optional[str]):
        if error != self._error:
            self._error = error
            self.error_changed.emit(error or "")
