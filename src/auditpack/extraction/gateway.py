"""Vision oracle gateway: photos in, ExtractedData out.

The oracle is any OpenAI-compatible chat-completions endpoint (OpenRouter by
default) that accepts inline image parts and a JSON-schema response format.
The gateway is stateless and never retries; callers decide whether to call
again.
"""

from __future__ import annotations

import base64
import re
import time
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx
from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    PermissionDeniedError,
)

from ..config import VisionConfig
from ..domain.constants import DEFAULT_IMAGE_MIME
from ..domain.models import ExtractedData
from ..errors import ConfigurationMissing, ExtractionEmpty, TransportFailure, ValidationFailure
from ..logging import get_logger
from .parser import coerce_extraction, parse_response_text
from .prompts import extraction_prompt, response_format, system_instruction

LOG = get_logger("extraction-gateway")

Photo = Union[str, bytes]

_DATA_URL_HEADER = re.compile(r"^data:(image/[a-zA-Z0-9\-\+\.]+);base64,")


def to_data_url(photo: Photo) -> str:
    """Return the photo as a data URL with an explicit MIME type.

    Strings may be data URLs or bare base64; the MIME type comes from the
    data URL header and defaults to image/jpeg. Raw bytes are encoded here.
    """
    if isinstance(photo, (bytes, bytearray)):
        mime = DEFAULT_IMAGE_MIME
        data = base64.b64encode(bytes(photo)).decode("ascii")
    else:
        match = _DATA_URL_HEADER.match(photo)
        mime = match.group(1) if match else DEFAULT_IMAGE_MIME
        data = photo.split(",", 1)[1] if "," in photo else photo
    return f"data:{mime};base64,{data}"


def image_part(photo: Photo) -> Dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": to_data_url(photo)}}


def _response_text(completion: Any) -> Optional[str]:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if isinstance(content, list):
        # Some providers answer with a list of content parts.
        parts = [p.get("text") if isinstance(p, dict) else getattr(p, "text", None) for p in content]
        return "".join(t for t in parts if isinstance(t, str)) or None
    return content if isinstance(content, str) else None


class ExtractionGateway:
    """Send package photos to the vision oracle and coerce the answer."""

    def __init__(self, config: VisionConfig, *, client: Optional[Any] = None) -> None:
        self.config = config
        self._client = client

    def _build_client(self) -> AsyncOpenAI:
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout_seconds, connect=10.0),
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        return AsyncOpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            http_client=http_client,
            max_retries=0,
        )

    def _messages(self, photos: Sequence[Photo]) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [{"type": "text", "text": extraction_prompt()}]
        content.extend(image_part(p) for p in photos)
        return [
            {"role": "system", "content": system_instruction()},
            {"role": "user", "content": content},
        ]

    async def extract(self, photos: Sequence[Photo]) -> ExtractedData:
        if not self.config.api_key:
            LOG.error("Vision API key missing in env/.env; cannot run extraction")
            raise ConfigurationMissing("Chave de API do modelo de visão não configurada (VISION_API_KEY).")
        if not photos:
            raise ValidationFailure("Nenhuma foto enviada para extração.")

        messages = self._messages(photos)
        owns_client = self._client is None
        client = self._client if self._client is not None else self._build_client()

        LOG.info(f"Calling vision oracle model='{self.config.model_name}' with {len(photos)} photo(s)")
        t0 = time.perf_counter()
        try:
            completion = await client.chat.completions.create(
                model=self.config.model_name,
                messages=messages,
                response_format=response_format(),
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except (AuthenticationError, PermissionDeniedError) as e:
            LOG.error(f"Vision oracle rejected the credential: {e}")
            raise ConfigurationMissing("A chave de API do modelo de visão foi recusada.") from e
        except (APIConnectionError, APITimeoutError) as e:
            LOG.error(f"Network/timeout while calling the vision oracle: {e}")
            raise TransportFailure("Falha na comunicação com o servidor de IA.") from e
        except APIStatusError as e:
            body = getattr(getattr(e, "response", None), "text", None)
            preview = body[:300] if body else None
            LOG.error(f"Vision oracle returned {e.status_code}. Body preview: {preview!r}")
            raise TransportFailure(
                f"O servidor de IA respondeu com erro {e.status_code}.", status_code=e.status_code
            ) from e
        except APIError as e:
            LOG.error(f"Vision oracle call failed: {e}")
            raise TransportFailure("Resposta inesperada do servidor de IA.") from e
        finally:
            if owns_client:
                await client.close()

        usage = getattr(completion, "usage", None)
        usage_dict = {k: getattr(usage, k, None) if usage else None for k in ("prompt_tokens", "completion_tokens", "total_tokens")}
        elapsed = time.perf_counter() - t0
        LOG.info(f"Vision oracle finished in {elapsed:.2f}s id={getattr(completion, 'id', None)} usage={usage_dict}")

        text = _response_text(completion)
        if not text:
            LOG.error("Vision oracle returned no text")
            raise ExtractionEmpty("O modelo de visão não retornou nenhum dado.")
        raw = parse_response_text(text)
        data = coerce_extraction(raw)
        LOG.info(f"[IA] razaoSocial        : {data.razao_social}")
        LOG.info(f"[IA] cnpj               : {list(data.cnpj)}")
        LOG.info(f"[IA] fabricanteEmbalagem: {data.fabricante_embalagem}")
        LOG.info(f"[IA] moldagem/formato   : {data.moldagem} / {data.formato_embalagem}")
        return data
