from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .auth_inputs import InvalidBaseUrlError, normalize_base_url
from .cli_shared import (
    N8NCTL_API_TOKEN,
    N8NCTL_BASE_URL,
    N8NCTL_CONFIG,
    ConfigError,
    _env_or_none,
    _write_secure_json,
)

_LOGIN_HINT = "please run `n8nctl login` first"


@dataclass(frozen=True)
class Config:
    api_token: str
    base_url: str

    def to_doc(self) -> dict[str, Any]:
        return {"api_token": self.api_token, "base_url": self.base_url}


def default_config_path() -> Path:
    return Path.home() / ".n8nctl" / "config.json"


def resolve_config_path(override: str | None) -> Path:
    raw = (override or _env_or_none(N8NCTL_CONFIG) or "").strip()
    if raw:
        return Path(raw).expanduser()
    return default_config_path()


def _read_config_doc(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"config not found at {path}; {_LOGIN_HINT}") from e
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}; {_LOGIN_HINT}") from e
    try:
        doc = json.loads(raw)
    except ValueError as e:
        raise ConfigError(f"malformed config {path}: {e}; {_LOGIN_HINT}") from e
    if not isinstance(doc, dict):
        raise ConfigError(f"malformed config {path}: expected JSON object; {_LOGIN_HINT}")
    return doc


def load_config(path: Path) -> Config:
    """Load API settings, letting N8NCTL_BASE_URL/N8NCTL_API_TOKEN win over the file."""
    env_url = _env_or_none(N8NCTL_BASE_URL)
    env_token = _env_or_none(N8NCTL_API_TOKEN)
    doc: dict[str, Any] = {}
    if not (env_url and env_token):
        doc = _read_config_doc(path)

    raw_url = (env_url or str(doc.get("base_url") or "")).strip()
    api_token = (env_token or str(doc.get("api_token") or "")).strip()
    if not raw_url or not api_token:
        raise ConfigError(f"config {path} is missing api_token or base_url; {_LOGIN_HINT}")
    try:
        base_url = normalize_base_url(raw_url)
    except InvalidBaseUrlError as e:
        source = N8NCTL_BASE_URL if env_url else str(path)
        raise ConfigError(f"invalid base_url in {source}: {e}; {_LOGIN_HINT}") from e
    return Config(api_token=api_token, base_url=base_url)


def save_config(path: Path, cfg: Config) -> None:
    _write_secure_json(path=path, obj=cfg.to_doc())
