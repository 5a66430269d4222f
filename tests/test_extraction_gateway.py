import asyncio
import json
import os
import sys
from types import SimpleNamespace

import httpx
import openai
import pytest

sys.path.insert(0, os.path.abspath("src"))

from auditpack.config import VisionConfig
from auditpack.errors import (
    ConfigurationMissing,
    ExtractionEmpty,
    ExtractionParseError,
    TransportFailure,
)
from auditpack.extraction.gateway import ExtractionGateway, image_part, to_data_url
from auditpack.extraction.prompts import FIELD_NAMES, REQUIRED_FIELDS, output_schema


class _FakeCompletions:
    def __init__(self, text=None, exc=None):
        self.text = text
        self.exc = exc
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        message = SimpleNamespace(content=self.text)
        return SimpleNamespace(id="cmpl-test", usage=None, choices=[SimpleNamespace(message=message)])


def _gateway(completions, api_key="sk-test"):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return ExtractionGateway(VisionConfig(api_key=api_key, model_name="vision-test"), client=client)


def _request():
    return httpx.Request("POST", "https://oracle.test/v1/chat/completions")


def test_photo_mime_type_comes_from_data_url_header():
    assert image_part("data:image/png;base64,iVBORw0")["image_url"]["url"] == "data:image/png;base64,iVBORw0"
    assert to_data_url("QUJD") == "data:image/jpeg;base64,QUJD"
    assert to_data_url("data:application/pdf;base64,QUJD") == "data:image/jpeg;base64,QUJD"
    assert to_data_url(b"ABC") == "data:image/jpeg;base64,QUJD"


def test_schema_covers_fifteen_fields_with_two_required():
    schema = output_schema()
    assert len(FIELD_NAMES) == 15
    assert set(schema["properties"]) == set(FIELD_NAMES)
    assert schema["required"] == list(REQUIRED_FIELDS) == ["razaoSocial", "cnpj"]
    assert schema["properties"]["cnpj"]["type"] == "array"


def test_single_request_carries_instruction_and_every_photo():
    completions = _FakeCompletions(text=json.dumps({"razaoSocial": "ACME LTDA", "cnpj": ["11.111.111/0001-11"], "moldagem": "injetado"}))
    photos = ["data:image/png;base64,AAAA", "data:image/webp;base64,BBBB", "CCCC"]

    data = asyncio.run(_gateway(completions).extract(photos))

    assert len(completions.calls) == 1
    call = completions.calls[0]
    assert call["model"] == "vision-test"
    assert call["response_format"]["type"] == "json_schema"
    user_parts = call["messages"][1]["content"]
    assert user_parts[0]["type"] == "text"
    assert "MOLDAGEM" in user_parts[0]["text"] and "CNPJ" in user_parts[0]["text"]
    urls = [p["image_url"]["url"] for p in user_parts[1:]]
    assert urls == ["data:image/png;base64,AAAA", "data:image/webp;base64,BBBB", "data:image/jpeg;base64,CCCC"]

    assert data.razao_social == "ACME LTDA"
    assert data.cnpj == ("11.111.111/0001-11",)
    assert data.moldagem == "INJETADO"


def test_missing_api_key_fails_before_dispatch():
    completions = _FakeCompletions(text="{}")
    with pytest.raises(ConfigurationMissing):
        asyncio.run(_gateway(completions, api_key=None).extract(["AAAA"]))
    assert completions.calls == []


def test_empty_response_text_raises_extraction_empty():
    with pytest.raises(ExtractionEmpty):
        asyncio.run(_gateway(_FakeCompletions(text="")).extract(["AAAA"]))


def test_unparsable_response_raises_parse_error():
    with pytest.raises(ExtractionParseError):
        asyncio.run(_gateway(_FakeCompletions(text="Não consegui ler a embalagem.")).extract(["AAAA"]))


def test_connection_error_surfaces_as_transport_failure():
    exc = openai.APIConnectionError(request=_request())
    with pytest.raises(TransportFailure):
        asyncio.run(_gateway(_FakeCompletions(exc=exc)).extract(["AAAA"]))


def test_http_error_status_is_kept():
    response = httpx.Response(429, request=_request(), text="rate limited")
    exc = openai.RateLimitError("rate limited", response=response, body=None)
    with pytest.raises(TransportFailure) as info:
        asyncio.run(_gateway(_FakeCompletions(exc=exc)).extract(["AAAA"]))
    assert info.value.status_code == 429


def test_rejected_credential_is_a_configuration_error():
    response = httpx.Response(401, request=_request(), text="bad key")
    exc = openai.AuthenticationError("bad key", response=response, body=None)
    with pytest.raises(ConfigurationMissing):
        asyncio.run(_gateway(_FakeCompletions(exc=exc)).extract(["AAAA"]))


def test_content_parts_are_joined_into_text():
    parts = [
        {"type": "text", "text": '{"razaoSocial": "ACME LTDA", '},
        {"type": "text", "text": '"cnpj": ["11.111.111/0001-11"]}'},
    ]
    data = asyncio.run(_gateway(_FakeCompletions(text=parts)).extract(["AAAA"]))
    assert data.razao_social == "ACME LTDA"
    assert data.cnpj_raiz == "11111111"


def test_non_text_content_is_treated_as_empty():
    with pytest.raises(ExtractionEmpty):
        asyncio.run(_gateway(_FakeCompletions(text={"unexpected": True})).extract(["AAAA"]))


def test_other_api_errors_surface_as_transport_failure():
    response = httpx.Response(200, request=_request(), text="not a completion")
    exc = openai.APIResponseValidationError(response=response, body=None)
    with pytest.raises(TransportFailure):
        asyncio.run(_gateway(_FakeCompletions(exc=exc)).extract(["AAAA"]))
