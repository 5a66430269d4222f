import json
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath("src"))

from auditpack import config
from auditpack.config import DEFAULT_VISION_MODEL, describe, load_reference_cnpjs, load_store, load_vision

KEYS = (
    "VISION_API_KEY",
    "OPEN_ROUTER_API_KEY",
    "OPENAI_API_KEY",
    "VISION_MODEL",
    "VISION_BASE_URL",
    "STORE_URL",
    "STORE_KEY",
    "SUPABASE_URL",
    "SUPABASE_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in KEYS:
        monkeypatch.delenv(key, raising=False)


def test_dotenv_found_from_subdirectory(tmp_path):
    (tmp_path / ".env").write_text("OPEN_ROUTER_API_KEY=sk-file\nSTORE_URL=https://db.example.test/\n", encoding="utf-8")
    sub = tmp_path / "a" / "b"
    sub.mkdir(parents=True)

    vision = load_vision(str(sub))
    store = load_store(str(sub))

    assert vision.api_key == "sk-file"
    assert vision.model_name == DEFAULT_VISION_MODEL
    assert store.url == "https://db.example.test"


def test_environment_wins_over_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("VISION_API_KEY=sk-file\nVISION_MODEL=file-model\n", encoding="utf-8")
    monkeypatch.setenv("VISION_API_KEY", "sk-env")

    vision = load_vision(str(tmp_path))

    assert vision.api_key == "sk-env"
    assert vision.model_name == "file-model"


def test_missing_key_is_reported_without_secrets(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "_find_upwards", lambda start, name: None)
    vision = load_vision(str(tmp_path))
    assert vision.api_key is None
    labels = dict(describe(vision, load_store(str(tmp_path))))
    assert labels["Vision API key"] == "missing"
    assert labels["Store URL"].startswith("missing")


def test_store_falls_back_to_supabase_names(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "_find_upwards", lambda start, name: None)
    monkeypatch.setenv("SUPABASE_URL", "https://x.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "anon")
    store = load_store(str(tmp_path))
    assert (store.url, store.key) == ("https://x.supabase.co", "anon")


@pytest.mark.parametrize("payload", [["11.111.111/0001-11", "22222222000122"], {"cnpjs": ["11.111.111/0001-11", "22222222000122"]}])
def test_reference_cnpjs_shapes(tmp_path, payload):
    (tmp_path / "reference_cnpjs.json").write_text(json.dumps(payload), encoding="utf-8")
    assert load_reference_cnpjs(str(tmp_path)) == ["11.111.111/0001-11", "22222222000122"]


def test_reference_cnpjs_invalid_file_is_ignored(tmp_path):
    (tmp_path / "reference_cnpjs.json").write_text("{broken", encoding="utf-8")
    assert load_reference_cnpjs(str(tmp_path)) == []
