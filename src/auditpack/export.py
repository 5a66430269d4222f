"""Spreadsheet export of list entries (one row per entry)."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Sequence

import pandas as pd

from .domain.models import InspectionList
from .logging import get_logger

LOG = get_logger("export")

COLUMNS = (
    "Lista",
    "Estabelecimento",
    "Cidade",
    "Data Leitura",
    "Razão Social",
    "CNPJ",
    "Raiz CNPJ",
    "Novo Prospecto",
    "Marca",
    "Descrição do Produto",
    "Conteúdo",
    "Endereço",
    "CEP",
    "Telefone",
    "Site",
    "Fabricante Embalagem",
    "Moldagem",
    "Formato",
    "Tipo",
    "Modelo",
    "Status Revisão",
)


def entry_rows(lists: Sequence[InspectionList]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for lst in lists:
        for entry in lst.entries:
            x = entry.extracted
            rows.append(
                {
                    "Lista": lst.name,
                    "Estabelecimento": lst.establishment,
                    "Cidade": lst.city,
                    "Data Leitura": x.data_leitura,
                    "Razão Social": x.razao_social,
                    "CNPJ": ", ".join(x.cnpj),
                    "Raiz CNPJ": x.cnpj_raiz,
                    "Novo Prospecto": "SIM" if entry.is_new_prospect else "NÃO",
                    "Marca": x.marca,
                    "Descrição do Produto": x.descricao_produto,
                    "Conteúdo": x.conteudo,
                    "Endereço": x.endereco,
                    "CEP": x.cep,
                    "Telefone": x.telefone,
                    "Site": x.site,
                    "Fabricante Embalagem": x.fabricante_embalagem,
                    "Moldagem": x.moldagem,
                    "Formato": x.formato_embalagem,
                    "Tipo": x.tipo_embalagem,
                    "Modelo": x.modelo_embalagem,
                    "Status Revisão": entry.review_status,
                }
            )
    return rows


def export_entries(lists: Sequence[InspectionList], path: str) -> int:
    """Write every entry of ``lists`` to ``path`` (.xlsx or .csv); returns the row count."""
    df = pd.DataFrame(entry_rows(lists), columns=list(COLUMNS))
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    if path.lower().endswith(".csv"):
        df.to_csv(path, index=False, encoding="utf-8-sig")
    else:
        df.to_excel(path, index=False, sheet_name="Itens", engine="openpyxl")
    LOG.info(f"Exported {len(df)} entr(y/ies) to {path}")
    return len(df)
