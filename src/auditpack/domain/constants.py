from __future__ import annotations

from typing import Dict, Tuple

# Value used for every text field the oracle could not read.
NOT_IDENTIFIED = "N/I"

CNPJ_ROOT_LENGTH = 8

# Molding technique
MOLDAGEM_TERMOFORMADO = "TERMOFORMADO"
MOLDAGEM_INJETADO = "INJETADO"
MOLDAGEM_CHOICES: Tuple[str, ...] = (MOLDAGEM_TERMOFORMADO, MOLDAGEM_INJETADO)
MOLDAGEM_DEFAULT = MOLDAGEM_TERMOFORMADO

# Package shape
FORMATO_REDONDO = "REDONDO"
FORMATO_RETANGULAR = "RETANGULAR"
FORMATO_QUADRADO = "QUADRADO"
FORMATO_OVAL = "OVAL"
FORMATO_CHOICES: Tuple[str, ...] = (FORMATO_REDONDO, FORMATO_RETANGULAR, FORMATO_QUADRADO, FORMATO_OVAL)
FORMATO_DEFAULT = FORMATO_REDONDO

# Package type is free text; only the fallback is fixed.
TIPO_EMBALAGEM_DEFAULT = "POTE"

# English spellings the model sometimes answers with.
ENUM_SYNONYMS: Dict[str, str] = {
    "THERMOFORMED": MOLDAGEM_TERMOFORMADO,
    "TERMOFORMADA": MOLDAGEM_TERMOFORMADO,
    "INJECTED": MOLDAGEM_INJETADO,
    "INJETADA": MOLDAGEM_INJETADO,
    "ROUND": FORMATO_REDONDO,
    "REDONDA": FORMATO_REDONDO,
    "RECTANGULAR": FORMATO_RETANGULAR,
    "SQUARE": FORMATO_QUADRADO,
    "QUADRADA": FORMATO_QUADRADO,
}

# Entry review workflow
REVIEW_PENDING = "PENDING"
REVIEW_APPROVED = "APPROVED"
REVIEW_REJECTED = "REJECTED"
REVIEW_CHOICES: Tuple[str, ...] = (REVIEW_PENDING, REVIEW_APPROVED, REVIEW_REJECTED)

# List lifecycle
LIST_EXECUTING = "EXECUTING"
LIST_CLOSED = "CLOSED"
LIST_STATUS_CHOICES: Tuple[str, ...] = (LIST_EXECUTING, LIST_CLOSED)

DEFAULT_IMAGE_MIME = "image/jpeg"
