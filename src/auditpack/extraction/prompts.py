from __future__ import annotations

from typing import Any, Dict, Tuple

from ..domain.constants import FORMATO_CHOICES, MOLDAGEM_CHOICES, NOT_IDENTIFIED

# Wire names in the order the oracle is asked to return them.
FIELD_NAMES: Tuple[str, ...] = (
    "razaoSocial",
    "cnpj",
    "marca",
    "descricaoProduto",
    "conteudo",
    "endereco",
    "cep",
    "telefone",
    "site",
    "fabricanteEmbalagem",
    "moldagem",
    "formatoEmbalagem",
    "tipoEmbalagem",
    "modeloEmbalagem",
    "dataLeitura",
)

REQUIRED_FIELDS: Tuple[str, ...] = ("razaoSocial", "cnpj")

KNOWN_MANUFACTURERS: Tuple[str, ...] = (
    "FIBRASA",
    "BOMIX",
    "REAL PLASTIC",
    "JAGUAR",
    "IDM",
    "AMCOR",
    "RIOPLASTIC",
    "BARRIPACK",
    "UP&IB",
    "METAL G",
)


def system_instruction() -> str:
    return (
        "Você é um especialista em auditoria de embalagens plásticas. "
        "Gere um JSON puro com os campos: " + ", ".join(FIELD_NAMES[:-1]) + ". "
        f"Use '{NOT_IDENTIFIED}' para campos não identificados. "
        "Não escreva texto fora do objeto JSON."
    )


def extraction_prompt() -> str:
    moldagem = " ou ".join(f"'{c}'" for c in MOLDAGEM_CHOICES)
    formato = ", ".join(f"'{c}'" for c in FORMATO_CHOICES[:-1]) + f" ou '{FORMATO_CHOICES[-1]}'"
    return (
        "Analise as imagens desta embalagem industrial e extraia os dados técnicos.\n\n"
        "REGRAS DE NEGÓCIO:\n"
        f"1. MOLDAGEM: Identifique se é {moldagem}.\n"
        f"2. FORMATO: {formato}.\n"
        "3. FABRICANTE DA PEÇA: Procure por logotipos no fundo da peça plástica. "
        f"Exemplos comuns: {', '.join(KNOWN_MANUFACTURERS)}.\n"
        "4. CNPJ: Extraia todos os CNPJs visíveis e coloque no array."
    )


def output_schema() -> Dict[str, Any]:
    """JSON schema for the oracle response; only legal name and CNPJs are mandatory."""
    properties: Dict[str, Any] = {name: {"type": ["string", "null"]} for name in FIELD_NAMES}
    properties["cnpj"] = {"type": "array", "items": {"type": "string"}}
    properties["moldagem"] = {"type": ["string", "null"], "enum": list(MOLDAGEM_CHOICES) + [None]}
    properties["formatoEmbalagem"] = {"type": ["string", "null"], "enum": list(FORMATO_CHOICES) + [None]}
    return {
        "type": "object",
        "additionalProperties": False,
        "required": list(REQUIRED_FIELDS),
        "properties": properties,
    }


def response_format() -> Dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {"name": "extracted_data", "strict": False, "schema": output_schema()},
    }
