"""Entry ingestion: photos -> extraction -> classification -> persisted entry."""

from __future__ import annotations

from typing import Optional, Sequence

from ..domain.models import InspectionList, ProductEntry, Session, User
from ..domain.prospect import KnownRootResolver
from ..errors import AuditPackError, PersistenceConflict, ValidationFailure
from ..extraction.gateway import ExtractionGateway, Photo, to_data_url
from ..logging import get_logger
from ..state import NOTIFY_SUCCESS, NOTIFY_WARNING, AppState
from ..store.base import ListStore

LOG = get_logger("orchestrator-ingest")


class EntryIngestionOrchestrator:
    """Sequence one capture event end to end.

    The list is written as a whole document, conditional on the revision
    last seen locally. Local state only changes after a confirmed write, so
    every failure leaves it as it was.
    """

    def __init__(
        self,
        gateway: ExtractionGateway,
        store: ListStore,
        state: AppState,
        resolver: Optional[KnownRootResolver] = None,
        *,
        match_any: bool = True,
        max_conflict_retries: int = 3,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.state = state
        self.resolver = resolver or KnownRootResolver(store=store)
        self.match_any = match_any
        self.max_conflict_retries = max_conflict_retries

    async def ingest(self, session: Session, list_id: Optional[str], photos: Sequence[Photo]) -> Optional[ProductEntry]:
        if not list_id or not session.is_authenticated:
            LOG.info("Ingestion skipped: no active list or no authenticated inspector")
            return None
        if not photos:
            raise ValidationFailure("Nenhuma foto capturada.")

        self.state.begin_processing(list_id)
        try:
            entry = await self._run(session.user, list_id, photos)
        except AuditPackError as e:
            self.state.notifications.notify("Falha na IA", str(e), NOTIFY_WARNING)
            raise
        finally:
            self.state.end_processing(list_id)

        self.state.notifications.notify("Item Capturado", "Dados extraídos via IA com sucesso.", NOTIFY_SUCCESS)
        return entry

    @staticmethod
    def _writable(lst: Optional[InspectionList], list_id: str) -> InspectionList:
        if lst is None:
            raise ValidationFailure(f"Lista {list_id} não encontrada.")
        if lst.is_closed:
            raise ValidationFailure(f"A lista '{lst.name}' está encerrada.")
        return lst

    def _target_list(self, list_id: str) -> InspectionList:
        return self._writable(self.state.get_list(list_id), list_id)

    async def _run(self, user: User, list_id: str, photos: Sequence[Photo]) -> ProductEntry:
        target = self._target_list(list_id)

        extracted = await self.gateway.extract(photos)
        is_new = await self.resolver.classify(extracted, match_any=self.match_any)

        entry = ProductEntry.create(
            list_id=list_id,
            inspector_id=user.id,
            photos=[to_data_url(p) for p in photos],
            extracted=extracted,
            is_new_prospect=is_new,
        )
        LOG.info(f"Built entry {entry.id} for list {list_id} (new_prospect={is_new})")

        saved = await self._persist(target, entry)
        self.state.put_list(saved)
        LOG.info(f"Persisted entry {entry.id}; list {list_id} now at revision {saved.revision}")
        return entry

    async def _persist(self, target: InspectionList, entry: ProductEntry) -> InspectionList:
        base = target
        attempt = 0
        while True:
            updated = base.with_entry(entry)
            try:
                return await self.store.replace_entries(base.id, updated.entries, expected_revision=base.revision)
            except PersistenceConflict:
                attempt += 1
                if attempt > self.max_conflict_retries:
                    LOG.error(f"Giving up on list {base.id} after {attempt} conflicting write(s)")
                    raise
                LOG.warning(f"Concurrent update on list {base.id}; re-reading (retry {attempt}/{self.max_conflict_retries})")
                # The list may have been closed or removed by the other writer.
                base = self._writable(await self.store.fetch_list(base.id), base.id)
