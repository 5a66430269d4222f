import os
import sys

import pytest

# Ensure src/ is importable when tests run from repo root
sys.path.insert(0, os.path.abspath("src"))

from auditpack.domain.cnpj import cnpj_root, cnpj_roots, digits_only


def test_formatted_cnpj_maps_to_root():
    assert cnpj_root("12.345.678/0009-10") == "12345678"


@pytest.mark.parametrize(
    "raw",
    ["12.345.678/0009-10", "1234567", "", "abc", "11111111000111", " 00.000.000/0001-91 ", "9" * 30],
)
def test_root_is_idempotent_and_fixed_length(raw):
    once = cnpj_root(raw)
    assert cnpj_root(once) == once
    assert len(once) in (0, 8)


def test_short_or_malformed_input_degrades_to_empty():
    assert cnpj_root("123.456") == ""
    assert cnpj_root(None) == ""
    assert cnpj_root(12345678901234) == ""
    assert cnpj_root([]) == ""


def test_sequence_uses_first_cnpj_only():
    assert cnpj_root(["11.111.111/0001-11", "22.222.222/0001-22"]) == "11111111"
    assert cnpj_root(("", "22.222.222/0001-22")) == ""


def test_roots_keep_order_and_drop_duplicates():
    values = ["22.222.222/0001-22", "bad", "11.111.111/0001-11", "22222222000199"]
    assert cnpj_roots(values) == ["22222222", "11111111"]
    assert cnpj_roots("33.333.333/0001-33") == ["33333333"]
    assert digits_only("12.345-6") == "123456"
