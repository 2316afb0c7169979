from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape


class N8nCtlError(Exception):
    pass


class UsageError(N8nCtlError):
    pass


class OpError(N8nCtlError):
    pass


class ConfigError(N8nCtlError):
    pass


N8NCTL_CONFIG = "N8NCTL_CONFIG"
N8NCTL_BASE_URL = "N8NCTL_BASE_URL"
N8NCTL_API_TOKEN = "N8NCTL_API_TOKEN"
N8NCTL_PLAIN_JSON = "N8NCTL_PLAIN_JSON"

_STATUS_CONSOLE = Console(stderr=True, highlight=False, soft_wrap=True)


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _rich_error(msg: str) -> None:
    _STATUS_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}")


@dataclass(frozen=True)
class GlobalOpts:
    config_path: Path
    workdir: Path
    pretty: bool = True
    quiet: bool = False


def _status(g: GlobalOpts, msg: str) -> None:
    """Write a status note to stderr unless --quiet was given."""
    if g.quiet:
        return
    _STATUS_CONSOLE.print(f"[dim]{escape(msg)}[/dim]")


def _truthy(raw: str | None) -> bool:
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def _require_str(val: str | None, name: str, *, hint: str) -> str:
    v = (val or "").strip()
    if not v:
        raise UsageError(f"missing {name} ({hint})")
    return v


def _print_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        sys.stdout.write(json.dumps(obj, indent=2) + "\n")
    else:
        sys.stdout.write(json.dumps(obj, separators=(",", ":")) + "\n")


def _print_response_body(raw: bytes, *, pretty: bool) -> None:
    text = raw.decode("utf-8", errors="replace")
    try:
        val = json.loads(text)
    except ValueError:
        sys.stdout.write(text.rstrip("\n") + "\n")
        return
    _print_json(val, pretty=pretty)


def _load_json_text(*, raw: str, label: str) -> str:
    """Validate that raw is JSON and hand back the original text."""
    try:
        json.loads(raw)
    except ValueError as e:
        raise UsageError(f"invalid {label}: {e}") from e
    return raw


def _write_secure_json(*, path: Path, obj: dict[str, Any]) -> None:
    _write_secure_text(path=path, text=json.dumps(obj, indent=2) + "\n")


def _write_secure_text(*, path: Path, text: str) -> None:
    try:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise OpError(f"failed to write {path}: {e}") from e
    try:
        os.chmod(path, 0o600)
    except OSError as e:
        raise OpError(f"failed to apply 0600 permissions to {path}: {e}") from e
