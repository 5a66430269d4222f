from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from .cnpj import cnpj_root
from .constants import (
    FORMATO_DEFAULT,
    LIST_CLOSED,
    LIST_EXECUTING,
    MOLDAGEM_DEFAULT,
    NOT_IDENTIFIED,
    REVIEW_CHOICES,
    REVIEW_PENDING,
    TIPO_EMBALAGEM_DEFAULT,
)


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ExtractedData:
    """One oracle reading of a package, already backfilled and coerced."""

    razao_social: str = NOT_IDENTIFIED
    cnpj: Tuple[str, ...] = ()
    marca: str = NOT_IDENTIFIED
    descricao_produto: str = NOT_IDENTIFIED
    conteudo: str = NOT_IDENTIFIED
    endereco: str = NOT_IDENTIFIED
    cep: str = NOT_IDENTIFIED
    telefone: str = NOT_IDENTIFIED
    site: str = NOT_IDENTIFIED
    fabricante_embalagem: str = NOT_IDENTIFIED
    moldagem: str = MOLDAGEM_DEFAULT
    formato_embalagem: str = FORMATO_DEFAULT
    tipo_embalagem: str = TIPO_EMBALAGEM_DEFAULT
    modelo_embalagem: str = NOT_IDENTIFIED
    data_leitura: str = NOT_IDENTIFIED

    @property
    def cnpj_raiz(self) -> str:
        return cnpj_root(self.cnpj)

    def to_record(self) -> Dict[str, Any]:
        record = asdict(self)
        record["cnpj"] = list(self.cnpj)
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ExtractedData":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in record.items() if k in known and v is not None}
        raw_cnpj = values.get("cnpj") or ()
        values["cnpj"] = (raw_cnpj,) if isinstance(raw_cnpj, str) else tuple(raw_cnpj)
        return cls(**values)


@dataclass(frozen=True)
class ProductEntry:
    id: str
    list_id: str
    inspector_id: str
    photos: Tuple[str, ...]
    extracted: ExtractedData
    is_new_prospect: bool
    review_status: str = REVIEW_PENDING
    captured_at: str = field(default_factory=now_iso)

    @classmethod
    def create(
        cls,
        *,
        list_id: str,
        inspector_id: str,
        photos: Sequence[str],
        extracted: ExtractedData,
        is_new_prospect: bool,
    ) -> "ProductEntry":
        if not photos:
            raise ValueError("an entry needs at least one photo")
        return cls(
            id=new_id(),
            list_id=list_id,
            inspector_id=inspector_id,
            photos=tuple(photos),
            extracted=extracted,
            is_new_prospect=is_new_prospect,
        )

    def to_record(self) -> Dict[str, Any]:
        """Flat record as embedded in the list document."""
        record: Dict[str, Any] = {
            "id": self.id,
            "list_id": self.list_id,
            "inspector_id": self.inspector_id,
            "photos": list(self.photos),
            "is_new_prospect": self.is_new_prospect,
            "review_status": self.review_status,
            "captured_at": self.captured_at,
            "cnpj_raiz": self.extracted.cnpj_raiz,
        }
        record.update(self.extracted.to_record())
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ProductEntry":
        status = str(record.get("review_status") or REVIEW_PENDING).upper()
        return cls(
            id=str(record["id"]),
            list_id=str(record.get("list_id") or ""),
            inspector_id=str(record.get("inspector_id") or ""),
            photos=tuple(record.get("photos") or ()),
            extracted=ExtractedData.from_record(record),
            is_new_prospect=bool(record.get("is_new_prospect", True)),
            review_status=status if status in REVIEW_CHOICES else REVIEW_PENDING,
            captured_at=str(record.get("captured_at") or ""),
        )


@dataclass(frozen=True)
class InspectionList:
    """A list of entries for one establishment; entries are newest first."""

    id: str
    name: str
    establishment: str
    city: str
    inspector_id: str
    created_at: str = field(default_factory=now_iso)
    is_closed: bool = False
    status: str = LIST_EXECUTING
    entries: Tuple[ProductEntry, ...] = ()
    revision: int = 0

    @classmethod
    def create(cls, *, name: str, establishment: str, city: str, inspector_id: str) -> "InspectionList":
        return cls(id=new_id(), name=name, establishment=establishment, city=city, inspector_id=inspector_id)

    def with_entry(self, entry: ProductEntry) -> "InspectionList":
        return replace(self, entries=(entry,) + self.entries)

    def closed(self) -> "InspectionList":
        return replace(self, is_closed=True, status=LIST_CLOSED)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "establishment": self.establishment,
            "city": self.city,
            "inspector_id": self.inspector_id,
            "created_at": self.created_at,
            "is_closed": self.is_closed,
            "status": self.status,
            "entries": [e.to_record() for e in self.entries],
            "revision": self.revision,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "InspectionList":
        is_closed = bool(record.get("is_closed", False))
        return cls(
            id=str(record["id"]),
            name=str(record.get("name") or ""),
            establishment=str(record.get("establishment") or ""),
            city=str(record.get("city") or ""),
            inspector_id=str(record.get("inspector_id") or ""),
            created_at=str(record.get("created_at") or ""),
            is_closed=is_closed,
            status=LIST_CLOSED if is_closed else str(record.get("status") or LIST_EXECUTING).upper(),
            entries=tuple(ProductEntry.from_record(e) for e in (record.get("entries") or ())),
            revision=int(record.get("revision") or 0),
        )


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    role: str = "usuario"
    created_at: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "User":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name") or ""),
            email=str(record.get("email") or ""),
            role=str(record.get("role") or "usuario"),
            created_at=record.get("created_at"),
        )


@dataclass(frozen=True)
class Session:
    """Who is acting; passed explicitly into orchestration calls."""

    user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.user.id)
