import asyncio
import os
import sys

sys.path.insert(0, os.path.abspath("src"))

from auditpack.domain.models import ExtractedData, InspectionList, ProductEntry
from auditpack.domain.prospect import KnownRootResolver, classify
from auditpack.store.base import InMemoryListStore


def test_no_cnpj_is_a_new_prospect():
    assert classify(ExtractedData(cnpj=()), set()) is True
    assert classify(ExtractedData(cnpj=()), {"11111111"}) is True


def test_known_root_is_not_a_new_prospect():
    extraction = ExtractedData(cnpj=("11.111.111/0001-11",))
    assert classify(extraction, {"11111111"}) is False


def test_match_is_by_root_not_full_cnpj():
    # Different branch suffix, same organization.
    extraction = ExtractedData(cnpj=("11.111.111/0002-92",))
    assert classify(extraction, {"11111111"}) is False
    assert classify(extraction, {"11111111000111"}) is True


def test_any_cnpj_versus_first_cnpj_variant():
    extraction = ExtractedData(cnpj=("22.222.222/0001-22", "11.111.111/0001-11"))
    assert classify(extraction, {"11111111"}) is False
    assert classify(extraction, {"11111111"}, match_any=False) is True


def test_resolver_combines_reference_list_and_store():
    persisted = ProductEntry.create(
        list_id="L1",
        inspector_id="u1",
        photos=["data:image/jpeg;base64,AAAA"],
        extracted=ExtractedData(cnpj=("33.333.333/0001-33",)),
        is_new_prospect=True,
    )
    lst = InspectionList(id="L1", name="Lista", establishment="Mercado", city="Recife", inspector_id="u1", entries=(persisted,))
    resolver = KnownRootResolver(["11.111.111/0001-11"], store=InMemoryListStore([lst]))

    extraction = ExtractedData(cnpj=("11111111000111", "33333333000199", "44.444.444/0001-44"))
    known = asyncio.run(resolver.known_roots_for(extraction))
    assert known == {"11111111", "33333333"}

    fresh = ExtractedData(cnpj=("44.444.444/0001-44",))
    assert asyncio.run(resolver.classify(fresh)) is True


def test_offline_resolver_uses_reference_list_only():
    resolver = KnownRootResolver(["11.111.111/0001-11"])
    assert asyncio.run(resolver.classify(ExtractedData(cnpj=("11.111.111/0009-99",)))) is False
    assert asyncio.run(resolver.classify(ExtractedData(cnpj=("55.555.555/0001-55",)))) is True
