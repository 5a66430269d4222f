import json
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from dotenv import dotenv_values

from .logging import get_logger

log = get_logger("config")

DEFAULT_VISION_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_VISION_MODEL = "google/gemini-2.5-pro"
REFERENCE_CNPJS_FILENAME = "reference_cnpjs.json"


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    This makes running tools from subdirectories (e.g., `src/`) still find
    repository-level config files like `.env` and `reference_cnpjs.json`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Read the nearest .env into a mapping; does not mutate the environment."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    env = {k: (v or "").strip() for k, v in dotenv_values(path).items() if k}
    log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    return env


def _lookup(env: Dict[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        v = os.environ.get(key)
        if v and v.strip():
            return v.strip()
    for key in keys:
        v = env.get(key) or env.get(key.lower())
        if v:
            return v
    return None


@dataclass(frozen=True)
class VisionConfig:
    """Settings required to talk to the vision oracle."""

    api_key: Optional[str]
    model_name: str = DEFAULT_VISION_MODEL
    base_url: str = DEFAULT_VISION_BASE_URL
    temperature: float = 0.0
    max_tokens: int = 4000
    timeout_seconds: float = 180.0


@dataclass(frozen=True)
class StoreConfig:
    """Settings for the hosted list store (PostgREST/Supabase REST)."""

    url: Optional[str]
    key: Optional[str]
    timeout_seconds: float = 30.0


def load_vision(dotenv_dir: str) -> VisionConfig:
    """Return the vision oracle settings from env or .env.

    The API key is looked up as VISION_API_KEY, then OPEN_ROUTER_API_KEY,
    then OPENAI_API_KEY. A missing key is not an error here; the gateway
    refuses to dispatch without one.
    """
    env = _read_dotenv(dotenv_dir)
    api_key = _lookup(env, "VISION_API_KEY", "OPEN_ROUTER_API_KEY", "OPENAI_API_KEY")
    if api_key:
        log.info("Vision API key configured")
    else:
        log.debug("No vision API key found in env or .env")
    return VisionConfig(
        api_key=api_key,
        model_name=_lookup(env, "VISION_MODEL") or DEFAULT_VISION_MODEL,
        base_url=_lookup(env, "VISION_BASE_URL") or DEFAULT_VISION_BASE_URL,
    )


def load_store(dotenv_dir: str) -> StoreConfig:
    env = _read_dotenv(dotenv_dir)
    url = _lookup(env, "STORE_URL", "SUPABASE_URL")
    key = _lookup(env, "STORE_KEY", "SUPABASE_KEY")
    if not url:
        log.debug("STORE_URL not found in env or .env")
    return StoreConfig(url=url.rstrip("/") if url else None, key=key)


def load_reference_cnpjs(script_dir: str) -> List[str]:
    """Return the reference CNPJ list from reference_cnpjs.json (found upwards).

    Accepts either a JSON array of strings or an object with a "cnpjs" array.
    """
    path = _find_upwards(script_dir, REFERENCE_CNPJS_FILENAME)
    if not path:
        log.info("No reference_cnpjs.json found; proceeding without reference CNPJs")
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        log.warning(f"Failed to read {REFERENCE_CNPJS_FILENAME}: {e}")
        return []
    if isinstance(data, dict):
        data = data.get("cnpjs")
    if not isinstance(data, list):
        log.warning(f"{REFERENCE_CNPJS_FILENAME} does not hold a list of CNPJs; ignoring it")
        return []
    values = [str(v) for v in data if v]
    log.info(f"Loaded {len(values)} reference CNPJ(s) from {path}")
    return values


def describe(vision: VisionConfig, store: StoreConfig) -> List[Tuple[str, str]]:
    """Return printable (label, value) pairs without leaking secrets."""
    return [
        ("Vision base URL", vision.base_url),
        ("Vision model", vision.model_name),
        ("Vision API key", "set" if vision.api_key else "missing"),
        ("Store URL", store.url or "missing (offline store)"),
        ("Store key", "set" if store.key else "missing"),
    ]
