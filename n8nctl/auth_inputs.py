from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from .cli_shared import N8NCTL_API_TOKEN, N8NCTL_BASE_URL


class AuthInputError(ValueError):
    """Raised when login inputs are missing or malformed."""


class InvalidBaseUrlError(AuthInputError):
    """Raised when a supplied base URL is not an http(s) URL."""


@dataclass(frozen=True)
class LoginInputs:
    base_url: str
    api_token: str


def _require_non_empty(val: str | None, *, name: str, hint: str) -> str:
    out = (val or "").strip()
    if not out:
        raise AuthInputError(f"missing {name} ({hint})")
    return out


def normalize_base_url(raw: str) -> str:
    out = (raw or "").strip().rstrip("/")
    if not out.startswith(("http://", "https://")):
        raise InvalidBaseUrlError(f"base URL must start with http:// or https://; got {raw!r}")
    return out


def api_key_settings_url(base_url: str) -> str:
    return f"{(base_url or '').strip().rstrip('/')}/settings/api"


def resolve_login_inputs(
    *,
    base_url: str | None,
    api_token: str | None,
    env_or_none: Callable[..., str | None],
    prompt: Callable[[str], str] | None = None,
    base_url_env_names: Sequence[str] = (N8NCTL_BASE_URL,),
    api_token_env_names: Sequence[str] = (N8NCTL_API_TOKEN,),
) -> LoginInputs:
    """Resolve login values from flags, then env, then interactive prompts.

    Prompts are only issued for values still missing after flags and env.
    Empty answers are rejected before anything is persisted.
    """

    resolved_base_url = (base_url or env_or_none(*base_url_env_names) or "").strip()
    if not resolved_base_url and prompt is not None:
        resolved_base_url = (prompt("Enter API base URL") or "").strip()

    resolved_token = (api_token or env_or_none(*api_token_env_names) or "").strip()
    if not resolved_token and prompt is not None:
        resolved_token = (
            prompt(
                f"Enter API token (visit {api_key_settings_url(resolved_base_url)} to generate one)"
            )
            or ""
        ).strip()

    url_hint_env = str(base_url_env_names[0]) if base_url_env_names else N8NCTL_BASE_URL
    token_hint_env = str(api_token_env_names[0]) if api_token_env_names else N8NCTL_API_TOKEN
    resolved_base_url = _require_non_empty(
        resolved_base_url,
        name="base URL",
        hint=f"--base-url or env {url_hint_env}",
    )
    resolved_token = _require_non_empty(
        resolved_token,
        name="API token",
        hint=f"--token or env {token_hint_env}",
    )
    return LoginInputs(base_url=normalize_base_url(resolved_base_url), api_token=resolved_token)
