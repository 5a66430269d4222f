from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..domain.constants import (
    ENUM_SYNONYMS,
    FORMATO_CHOICES,
    FORMATO_DEFAULT,
    MOLDAGEM_CHOICES,
    MOLDAGEM_DEFAULT,
    NOT_IDENTIFIED,
    TIPO_EMBALAGEM_DEFAULT,
)
from ..domain.models import ExtractedData
from ..errors import ExtractionEmpty, ExtractionParseError
from ..logging import get_logger

LOG = get_logger("extraction-parser")

_FENCED = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def _scavenge_json_block(s: str) -> Optional[Any]:
    """Find a JSON object inside model text that carries prose or code fences."""
    candidates: List[str] = []

    fenced = _FENCED.search(s)
    if fenced and fenced.group(1):
        candidates.append(fenced.group(1).strip())

    start_obj = s.find("{")
    end_obj = s.rfind("}")
    if start_obj != -1 and end_obj != -1 and end_obj > start_obj:
        candidates.append(s[start_obj : end_obj + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except ValueError:
            continue
    return None


def parse_response_text(text: Optional[str]) -> Dict[str, Any]:
    """Turn raw oracle text into a JSON object or raise a typed error."""
    content = text.strip() if isinstance(text, str) else ""
    if not content:
        raise ExtractionEmpty("O modelo de visão não retornou nenhum dado.")
    try:
        obj = json.loads(content)
    except ValueError:
        LOG.debug(f"Direct JSON parse failed; scavenging (first 500 chars: {content[:500]!r})")
        obj = _scavenge_json_block(content)
    if obj is None:
        raise ExtractionParseError("A resposta do modelo de visão não é um JSON válido.")
    if not isinstance(obj, dict):
        raise ExtractionParseError(f"A resposta do modelo de visão não é um objeto JSON (recebido {type(obj).__name__}).")
    return obj


def _text(value: Any, default: str = NOT_IDENTIFIED) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    s = str(value).strip()
    return s or default


def _cnpj_list(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]
    return tuple(str(v).strip() for v in items if v is not None and str(v).strip())


def _enum(value: Any, choices: Tuple[str, ...], default: str, field_name: str) -> str:
    raw = _text(value, default="").upper()
    if not raw or raw == NOT_IDENTIFIED:
        return default
    raw = ENUM_SYNONYMS.get(raw, raw)
    if raw not in choices:
        LOG.warning(f"Unexpected {field_name} value {raw!r}; using {default}")
        return default
    return raw


def capture_timestamp() -> str:
    return datetime.now().strftime("%d/%m/%Y, %H:%M:%S")


def coerce_extraction(raw: Dict[str, Any], *, data_leitura: Optional[str] = None) -> ExtractedData:
    """Backfill and coerce a (possibly partial) oracle object into ExtractedData.

    Missing, null or blank text fields become "N/I"; a scalar CNPJ becomes a
    one-element tuple; enum fields are upper-cased and fall back to their
    defaults. The capture timestamp is always the local reading time.
    """
    data = ExtractedData(
        razao_social=_text(raw.get("razaoSocial")),
        cnpj=_cnpj_list(raw.get("cnpj")),
        marca=_text(raw.get("marca")),
        descricao_produto=_text(raw.get("descricaoProduto")),
        conteudo=_text(raw.get("conteudo")),
        endereco=_text(raw.get("endereco")),
        cep=_text(raw.get("cep")),
        telefone=_text(raw.get("telefone")),
        site=_text(raw.get("site")),
        fabricante_embalagem=_text(raw.get("fabricanteEmbalagem")),
        moldagem=_enum(raw.get("moldagem"), MOLDAGEM_CHOICES, MOLDAGEM_DEFAULT, "moldagem"),
        formato_embalagem=_enum(raw.get("formatoEmbalagem"), FORMATO_CHOICES, FORMATO_DEFAULT, "formatoEmbalagem"),
        tipo_embalagem=_text(raw.get("tipoEmbalagem"), default=TIPO_EMBALAGEM_DEFAULT).upper(),
        modelo_embalagem=_text(raw.get("modeloEmbalagem")),
        data_leitura=data_leitura or capture_timestamp(),
    )
    missing = [k for k in ("razaoSocial", "cnpj") if not raw.get(k)]
    if missing:
        LOG.warning(f"Oracle response lacks mandatory field(s): {', '.join(missing)}")
    return data
