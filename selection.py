import logging
from typing import Iterator, List, Tuple

from PySide6.QtCore import QObject, Signal

from constants import COMPARE_LIMIT

logger = logging.getLogger(__name__)


class SelectionSet(QObject):
    """
    Items picked for side-by-side comparison.

    Holds at most `capacity` distinct ids in the order they were added. Adding
    a duplicate or adding to a full set leaves the set unchanged; telling the
    user why is up to the caller (see can_add_more()).
    """

    selection_changed = Signal(list)

    def __init__(self, capacity: int = COMPARE_LIMIT, parent=None):
        super().__init__(parent)
        if capacity < 1:
            raise ValueError("Selection capacity must be at least 1")
        self._capacity = capacity
        self._ids: List[str] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(self._ids)

    def can_add_more(self) -> bool:
        return len(self._ids) < self._capacity

    def add(self, item_id: str) -> bool:
        """Returns True if the id was added."""
        if item_id in self._ids:
            return False
        if not self.can_add_more():
            logger.debug(f"Selection full ({self._capacity}); ignoring {item_id}.")
            return False
        self._ids.append(item_id)
        self.selection_changed.emit(list(self._ids))
        return True

    def remove(self, item_id: str) -> bool:
        if item_id not in self._ids:
            return False
        self._ids.remove(item_id)
        self.selection_changed.emit(list(self._ids))
        return True

    def clear(self):
        if self._ids:
            self._ids = []
            self.selection_changed.emit([])

    def __contains__(self, item_id) -> bool:
        return item_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._ids))
