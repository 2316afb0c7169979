from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch) -> Path:
    for name in ("N8NCTL_BASE_URL", "N8NCTL_API_TOKEN", "N8NCTL_PLAIN_JSON"):
        monkeypatch.delenv(name, raising=False)
    cfg = tmp_path / "home" / ".n8nctl" / "config.json"
    monkeypatch.setenv("N8NCTL_CONFIG", str(cfg))
    return cfg


@pytest.fixture
def config_path(_isolated_env: Path) -> Path:
    return _isolated_env


@pytest.fixture
def seeded_config(config_path: Path) -> Path:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        json.dumps({"api_token": "tok-123", "base_url": "https://n8n.example.com"}),
        encoding="utf-8",
    )
    return config_path
