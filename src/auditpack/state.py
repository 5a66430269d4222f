"""In-memory client state: the lists collection, processing flags, notifications.

Only the ingestion orchestrator (after a confirmed write) and the list sync
(on refresh) mutate the lists collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from .domain.models import InspectionList, new_id, now_iso
from .errors import IngestionInProgress
from .logging import get_logger

LOG = get_logger("state")

NOTIFY_SUCCESS = "success"
NOTIFY_INFO = "info"
NOTIFY_WARNING = "warning"

DEFAULT_MAX_NOTIFICATIONS = 50


@dataclass
class Notification:
    title: str
    message: str
    kind: str = NOTIFY_INFO
    id: str = field(default_factory=new_id)
    timestamp: str = field(default_factory=now_iso)
    read: bool = False


class NotificationCenter:
    """Newest-first feed of dismissible notifications.

    Only the newest ``max_items`` are kept; older ones fall off the end.
    """

    def __init__(self, max_items: int = DEFAULT_MAX_NOTIFICATIONS) -> None:
        self.max_items = max_items
        self._items: List[Notification] = []

    def notify(self, title: str, message: str, kind: str = NOTIFY_INFO) -> Notification:
        n = Notification(title=title, message=message, kind=kind)
        self._items.insert(0, n)
        del self._items[self.max_items :]
        log = LOG.warning if kind == NOTIFY_WARNING else LOG.info
        log(f"[{kind}] {title}: {message}")
        return n

    def dismiss(self, notification_id: str) -> bool:
        before = len(self._items)
        self._items = [n for n in self._items if n.id != notification_id]
        return len(self._items) != before

    def mark_all_read(self) -> None:
        for n in self._items:
            n.read = True

    @property
    def items(self) -> List[Notification]:
        return list(self._items)

    @property
    def unread(self) -> List[Notification]:
        return [n for n in self._items if not n.read]


class AppState:
    def __init__(self) -> None:
        self._lists: List[InspectionList] = []
        self._processing: Set[str] = set()
        self.notifications = NotificationCenter()

    # ---------- lists ----------
    @property
    def lists(self) -> List[InspectionList]:
        return list(self._lists)

    def get_list(self, list_id: str) -> Optional[InspectionList]:
        for lst in self._lists:
            if lst.id == list_id:
                return lst
        return None

    def replace_lists(self, lists: Sequence[InspectionList]) -> None:
        self._lists = list(lists)
        LOG.debug(f"Local state replaced with {len(self._lists)} list(s)")

    def put_list(self, lst: InspectionList) -> None:
        """Swap in a confirmed list record; new lists go first."""
        for i, existing in enumerate(self._lists):
            if existing.id == lst.id:
                self._lists[i] = lst
                return
        self._lists.insert(0, lst)

    # ---------- processing flags ----------
    def is_processing(self, list_id: Optional[str] = None) -> bool:
        if list_id is None:
            return bool(self._processing)
        return list_id in self._processing

    def begin_processing(self, list_id: str) -> None:
        if list_id in self._processing:
            raise IngestionInProgress("Já existe uma captura em processamento para esta lista.")
        self._processing.add(list_id)

    def end_processing(self, list_id: str) -> None:
        self._processing.discard(list_id)
