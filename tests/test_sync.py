import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath("src"))

from auditpack.domain.constants import LIST_CLOSED
from auditpack.domain.models import InspectionList, Session, User
from auditpack.errors import PersistenceConflict, ValidationFailure
from auditpack.orchestrator import ListSync
from auditpack.state import AppState
from auditpack.store.base import InMemoryListStore

SESSION = Session(user=User(id="u1", name="Auditor", email="auditor@demo.com"))


def _list(list_id, created_at):
    return InspectionList(
        id=list_id, name=f"Lista {list_id}", establishment="Mercado", city="Recife", inspector_id="u1", created_at=created_at
    )


def test_refresh_replaces_local_lists_newest_first():
    store = InMemoryListStore([_list("old", "2024-01-01T10:00:00"), _list("new", "2024-03-01T10:00:00")])
    state = AppState()
    state.replace_lists([_list("stale", "2023-01-01T00:00:00")])

    lists = asyncio.run(ListSync(store, state).refresh())

    assert [lst.id for lst in lists] == ["new", "old"]
    assert [lst.id for lst in state.lists] == ["new", "old"]


def test_create_list_persists_and_goes_first():
    store = InMemoryListStore([_list("old", "2024-01-01T10:00:00")])
    state = AppState()
    sync = ListSync(store, state)
    asyncio.run(sync.refresh())

    created = asyncio.run(sync.create_list(SESSION, "  Auditoria Março ", "Mercado Sol", "Olinda"))

    assert created.name == "Auditoria Março"
    assert created.inspector_id == "u1"
    assert created.entries == ()
    assert state.lists[0].id == created.id
    assert asyncio.run(store.fetch_list(created.id)) == created


def test_create_list_requires_login_and_name():
    sync = ListSync(InMemoryListStore(), AppState())
    with pytest.raises(ValidationFailure):
        asyncio.run(sync.create_list(Session(), "Lista", "Mercado", "Recife"))
    with pytest.raises(ValidationFailure):
        asyncio.run(sync.create_list(SESSION, "   ", "Mercado", "Recife"))


def test_close_list_bumps_revision_and_updates_state():
    store = InMemoryListStore([_list("L1", "2024-01-01T10:00:00")])
    state = AppState()
    sync = ListSync(store, state)
    asyncio.run(sync.refresh())

    closed = asyncio.run(sync.close_list(SESSION, "L1"))

    assert closed.is_closed and closed.status == LIST_CLOSED
    assert closed.revision == 1
    assert state.get_list("L1") == closed
    # closing twice is a no-op
    assert asyncio.run(sync.close_list(SESSION, "L1")) == closed
    assert store.write_count == 1


def test_close_list_with_stale_revision_conflicts():
    store = InMemoryListStore([_list("L1", "2024-01-01T10:00:00")])
    state = AppState()
    sync = ListSync(store, state)
    asyncio.run(sync.refresh())
    asyncio.run(store.replace_entries("L1", [], expected_revision=0))

    with pytest.raises(PersistenceConflict):
        asyncio.run(sync.close_list(SESSION, "L1"))
    assert not state.get_list("L1").is_closed


def test_close_unknown_list():
    sync = ListSync(InMemoryListStore(), AppState())
    with pytest.raises(ValidationFailure):
        asyncio.run(sync.close_list(SESSION, "nope"))
