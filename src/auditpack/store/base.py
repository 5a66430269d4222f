from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from ..domain.models import InspectionList, ProductEntry
from ..errors import PersistenceConflict, ValidationFailure
from ..logging import get_logger

LOG = get_logger("store")


class ListStore:
    """Interface for the authoritative list/entry store.

    Lists are the unit of persistence: entries live embedded in their list
    record, so adding an entry rewrites the whole entries sequence. Writes
    are conditional on the list revision the caller last saw.
    """

    async def fetch_lists(self) -> List[InspectionList]:
        """All lists, newest ``created_at`` first."""
        raise NotImplementedError

    async def fetch_list(self, list_id: str) -> Optional[InspectionList]:
        raise NotImplementedError

    async def create_list(self, lst: InspectionList) -> InspectionList:
        raise NotImplementedError

    async def replace_entries(
        self, list_id: str, entries: Sequence[ProductEntry], *, expected_revision: int
    ) -> InspectionList:
        """Replace the entries of ``list_id`` and bump its revision.

        Raises PersistenceConflict when the stored revision differs from
        ``expected_revision`` and ValidationFailure when the list is unknown.
        """
        raise NotImplementedError

    async def close_list(self, list_id: str, *, expected_revision: int) -> InspectionList:
        raise NotImplementedError

    async def root_exists(self, root: str) -> bool:
        """Whether any persisted entry carries the given CNPJ root."""
        raise NotImplementedError

    async def find_user(self, email: str) -> Optional[Dict[str, Any]]:
        """Raw user record (password included) for ``email``, if any."""
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class InMemoryListStore(ListStore):
    """Process-local store used offline and in tests."""

    def __init__(self, lists: Sequence[InspectionList] = (), users: Sequence[Dict[str, Any]] = ()) -> None:
        self._lists: Dict[str, InspectionList] = {lst.id: lst for lst in lists}
        self._users: List[Dict[str, Any]] = [dict(u) for u in users]
        self.write_count = 0

    async def fetch_lists(self) -> List[InspectionList]:
        return sorted(self._lists.values(), key=lambda lst: lst.created_at, reverse=True)

    async def fetch_list(self, list_id: str) -> Optional[InspectionList]:
        return self._lists.get(list_id)

    async def create_list(self, lst: InspectionList) -> InspectionList:
        if lst.id in self._lists:
            raise ValidationFailure(f"Lista {lst.id} já existe.")
        self.write_count += 1
        self._lists[lst.id] = lst
        LOG.info(f"Created list {lst.id} ({lst.name})")
        return lst

    def _current(self, list_id: str, expected_revision: int) -> InspectionList:
        current = self._lists.get(list_id)
        if current is None:
            raise ValidationFailure(f"Lista {list_id} não encontrada.")
        if current.revision != expected_revision:
            LOG.warning(
                f"Revision conflict on list {list_id}: expected {expected_revision}, stored {current.revision}"
            )
            raise PersistenceConflict(f"A lista {list_id} foi alterada por outro usuário.")
        return current

    async def replace_entries(
        self, list_id: str, entries: Sequence[ProductEntry], *, expected_revision: int
    ) -> InspectionList:
        current = self._current(list_id, expected_revision)
        self.write_count += 1
        updated = replace(current, entries=tuple(entries), revision=current.revision + 1)
        self._lists[list_id] = updated
        return updated

    async def close_list(self, list_id: str, *, expected_revision: int) -> InspectionList:
        current = self._current(list_id, expected_revision)
        self.write_count += 1
        updated = replace(current.closed(), revision=current.revision + 1)
        self._lists[list_id] = updated
        return updated

    async def root_exists(self, root: str) -> bool:
        if not root:
            return False
        return any(e.extracted.cnpj_raiz == root for lst in self._lists.values() for e in lst.entries)

    async def find_user(self, email: str) -> Optional[Dict[str, Any]]:
        wanted = (email or "").strip().lower()
        for user in self._users:
            if str(user.get("email") or "").strip().lower() == wanted:
                return copy.deepcopy(user)
        return None
