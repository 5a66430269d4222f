from __future__ import annotations

from typing import TYPE_CHECKING, AbstractSet, Iterable, Optional, Set

from ..logging import get_logger
from .cnpj import cnpj_root, cnpj_roots
from .models import ExtractedData

if TYPE_CHECKING:
    from ..store.base import ListStore

LOG = get_logger("prospect")


def classify(extraction: ExtractedData, known_roots: AbstractSet[str], *, match_any: bool = True) -> bool:
    """Return True when the extraction is a new prospect.

    Matching is by organizational root, never by the full CNPJ string. With
    ``match_any`` every extracted CNPJ is checked; otherwise only the first
    one. No CNPJ at all counts as new.
    """
    roots = cnpj_roots(extraction.cnpj) if match_any else [cnpj_root(extraction.cnpj)]
    for root in roots:
        if root and root in known_roots:
            LOG.debug(f"CNPJ root {root} is known")
            return False
    return True


class KnownRootResolver:
    """Build the set of known roots relevant to one extraction.

    Combines a static reference list with a live existence check against
    previously persisted entries when a store is given. Without a store the
    reference list is the whole knowledge (offline variant).
    """

    def __init__(self, reference_cnpjs: Iterable[str] = (), store: Optional["ListStore"] = None) -> None:
        self.reference_roots: Set[str] = set(cnpj_roots(list(reference_cnpjs)))
        self.store = store

    async def known_roots_for(self, extraction: ExtractedData) -> Set[str]:
        known: Set[str] = set()
        for root in cnpj_roots(extraction.cnpj):
            if root in self.reference_roots:
                known.add(root)
                continue
            if self.store is not None and await self.store.root_exists(root):
                LOG.info(f"CNPJ root {root} already present in a persisted entry")
                known.add(root)
        return known

    async def classify(self, extraction: ExtractedData, *, match_any: bool = True) -> bool:
        known = await self.known_roots_for(extraction)
        is_new = classify(extraction, known, match_any=match_any)
        verdict = "NEW" if is_new else "KNOWN"
        LOG.info(f"Prospect classification: cnpj={list(extraction.cnpj)} known={sorted(known)} -> {verdict}")
        return is_new
