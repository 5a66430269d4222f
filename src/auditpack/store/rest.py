from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import StoreConfig
from ..domain.constants import LIST_CLOSED
from ..domain.models import InspectionList, ProductEntry
from ..errors import ConfigurationMissing, PersistenceConflict, TransportFailure, ValidationFailure
from ..logging import get_logger
from .base import ListStore

LISTS_TABLE = "inspection_lists"
USERS_TABLE = "users"


class RestListStore(ListStore):
    """Thin async client for a PostgREST (Supabase-style) list store.

    Only implements the subset we use: the ``inspection_lists`` table with
    entries embedded as a JSON column, and credential lookup in ``users``.
    """

    def __init__(
        self,
        base_url: str,
        key: Optional[str],
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base = base_url.rstrip("/")
        self.log = get_logger("store-rest")
        headers = {"Accept": "application/json"}
        if key:
            headers["apikey"] = key
            headers["Authorization"] = f"Bearer {key}"
        self.s = httpx.AsyncClient(headers=headers, timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, config: StoreConfig) -> "RestListStore":
        if not config.url:
            raise ConfigurationMissing("URL do banco de dados não configurada (STORE_URL).")
        return cls(config.url, config.key, timeout=config.timeout_seconds)

    async def __aenter__(self) -> "RestListStore":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.s.aclose()

    # ---------- helpers ----------
    def _url(self, table: str) -> str:
        return f"{self.base}/rest/v1/{table}"

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Any] = None,
        returning: bool = False,
    ) -> Any:
        headers = {"Prefer": "return=representation"} if returning else None
        try:
            r = await self.s.request(method, self._url(table), params=params, json=payload, headers=headers)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            self.log.error(f"{method} {table} failed with HTTP {status}: {e.response.text[:300]}")
            raise TransportFailure(f"O banco de dados respondeu com erro {status}.", status_code=status) from e
        except httpx.HTTPError as e:
            self.log.error(f"{method} {table} failed: {e}")
            raise TransportFailure("Não foi possível acessar o banco de dados. Verifique sua conexão.") from e
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise TransportFailure("Resposta inválida do banco de dados.") from e

    @staticmethod
    def _rows(body: Any) -> List[Dict[str, Any]]:
        return [row for row in body if isinstance(row, dict)] if isinstance(body, list) else []

    # ---------- lists ----------
    async def fetch_lists(self) -> List[InspectionList]:
        body = await self._request("GET", LISTS_TABLE, params={"select": "*", "order": "created_at.desc"})
        lists = [InspectionList.from_record(row) for row in self._rows(body)]
        self.log.info(f"Fetched {len(lists)} list(s)")
        return lists

    async def fetch_list(self, list_id: str) -> Optional[InspectionList]:
        body = await self._request("GET", LISTS_TABLE, params={"select": "*", "id": f"eq.{list_id}"})
        rows = self._rows(body)
        return InspectionList.from_record(rows[0]) if rows else None

    async def create_list(self, lst: InspectionList) -> InspectionList:
        self.log.info(f"POST list: name={lst.name!r}, establishment={lst.establishment!r}, city={lst.city!r}")
        body = await self._request("POST", LISTS_TABLE, payload=lst.to_record(), returning=True)
        rows = self._rows(body)
        return InspectionList.from_record(rows[0]) if rows else lst

    async def _conditional_patch(self, list_id: str, expected_revision: int, payload: Dict[str, Any]) -> InspectionList:
        payload = dict(payload, revision=expected_revision + 1)
        params = {"id": f"eq.{list_id}", "revision": f"eq.{expected_revision}"}
        body = await self._request("PATCH", LISTS_TABLE, params=params, payload=payload, returning=True)
        rows = self._rows(body)
        if rows:
            return InspectionList.from_record(rows[0])
        # Nothing matched: either the list is gone or someone else wrote first.
        if await self.fetch_list(list_id) is None:
            raise ValidationFailure(f"Lista {list_id} não encontrada.")
        self.log.warning(f"Revision conflict on list {list_id} (expected revision {expected_revision})")
        raise PersistenceConflict(f"A lista {list_id} foi alterada por outro usuário.")

    async def replace_entries(
        self, list_id: str, entries: Sequence[ProductEntry], *, expected_revision: int
    ) -> InspectionList:
        self.log.info(f"PATCH list {list_id}: {len(entries)} entr(y/ies) at revision {expected_revision}")
        return await self._conditional_patch(
            list_id, expected_revision, {"entries": [e.to_record() for e in entries]}
        )

    async def close_list(self, list_id: str, *, expected_revision: int) -> InspectionList:
        self.log.info(f"PATCH list {list_id}: closing")
        return await self._conditional_patch(list_id, expected_revision, {"is_closed": True, "status": LIST_CLOSED})

    async def root_exists(self, root: str) -> bool:
        if not root:
            return False
        containment = json.dumps([{"cnpj_raiz": root}], separators=(",", ":"))
        body = await self._request(
            "GET", LISTS_TABLE, params={"select": "id", "entries": f"cs.{containment}", "limit": "1"}
        )
        return bool(self._rows(body))

    # ---------- users ----------
    async def find_user(self, email: str) -> Optional[Dict[str, Any]]:
        body = await self._request(
            "GET", USERS_TABLE, params={"select": "*", "email": f"eq.{(email or '').strip()}", "limit": "1"}
        )
        rows = self._rows(body)
        return rows[0] if rows else None
