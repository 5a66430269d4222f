from __future__ import annotations

from typing import List

from ..domain.models import InspectionList, Session
from ..errors import ValidationFailure
from ..logging import get_logger
from ..state import NOTIFY_SUCCESS, AppState
from ..store.base import ListStore

LOG = get_logger("orchestrator-sync")


class ListSync:
    """Mirror the authoritative list collection into local state."""

    def __init__(self, store: ListStore, state: AppState) -> None:
        self.store = store
        self.state = state

    async def refresh(self) -> List[InspectionList]:
        """Fetch every list (newest first) and replace local state wholesale."""
        lists = await self.store.fetch_lists()
        self.state.replace_lists(lists)
        LOG.info(f"Synchronized {len(lists)} list(s) from the store")
        return lists

    async def create_list(self, session: Session, name: str, establishment: str, city: str) -> InspectionList:
        if not session.is_authenticated:
            raise ValidationFailure("Faça login para criar uma lista.")
        name = (name or "").strip()
        if not name:
            raise ValidationFailure("Informe o nome da lista.")
        lst = InspectionList.create(
            name=name,
            establishment=(establishment or "").strip(),
            city=(city or "").strip(),
            inspector_id=session.user.id,
        )
        saved = await self.store.create_list(lst)
        self.state.put_list(saved)
        self.state.notifications.notify("Lista criada", f"{saved.name} • {saved.establishment}", NOTIFY_SUCCESS)
        return saved

    async def close_list(self, session: Session, list_id: str) -> InspectionList:
        if not session.is_authenticated:
            raise ValidationFailure("Faça login para encerrar uma lista.")
        current = self.state.get_list(list_id) or await self.store.fetch_list(list_id)
        if current is None:
            raise ValidationFailure(f"Lista {list_id} não encontrada.")
        if current.is_closed:
            return current
        saved = await self.store.close_list(list_id, expected_revision=current.revision)
        self.state.put_list(saved)
        LOG.info(f"Closed list {list_id}")
        return saved
