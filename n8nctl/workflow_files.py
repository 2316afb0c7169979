"""Local workflow authoring files.

A workflow lives next to the user as ``workflow.yaml``. Before conversion the
YAML is rendered: ``jsCode: file(name)`` lines are replaced by the contents of
the referenced script, then ``${{ NAME }}`` placeholders are filled from
``.env``. The last confirmed JSON translation is cached in
``.out/workflow.json``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import dotenv_values

from .cli_shared import OpError

WORKFLOW_FILE = "workflow.yaml"
ENV_FILE = ".env"
CACHE_DIR = ".out"
CACHE_FILE = "workflow.json"

STARTER_WORKFLOW_YAML = """name: Sample Workflow
nodes:
  - id: "1"
    name: Start
    type: n8n-nodes-base.manualTrigger
    typeVersion: 1
    position: [250, 300]
  - id: "2"
    name: HTTP Request
    type: n8n-nodes-base.httpRequest
    typeVersion: 1
    position: [450, 300]
    credentials:
      httpBasicAuth:
        id: "credential-id"
        name: "My HTTP Basic Auth"
    parameters:
      url: "https://jsonplaceholder.typicode.com/posts/1"
connections:
  Start:
    main:
      - - node: HTTP Request
          type: main
          index: 0
settings: {}
"""

_PLACEHOLDER_RE = re.compile(r"\$\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
_JS_CODE_RE = re.compile(r"^(?P<indent> *)jsCode: file\((?P<name>[^)]*)\)\s*$")
_BLOCK_INDENT = "  "


@dataclass(frozen=True)
class WorkflowPaths:
    root: Path

    @property
    def yaml_path(self) -> Path:
        return self.root / WORKFLOW_FILE

    @property
    def env_path(self) -> Path:
        return self.root / ENV_FILE

    @property
    def cache_dir(self) -> Path:
        return self.root / CACHE_DIR

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / CACHE_FILE

    def cache_label(self) -> str:
        return f"{CACHE_DIR}/{CACHE_FILE}"


def write_starter_workflow(paths: WorkflowPaths) -> Path:
    target = paths.yaml_path
    if target.exists():
        raise OpError(f"{WORKFLOW_FILE} already exists")
    try:
        target.write_text(STARTER_WORKFLOW_YAML, encoding="utf-8")
    except OSError as e:
        raise OpError(f"failed to write {target}: {e}") from e
    return target


def _read_utf8(path: Path) -> str:
    # Decoded from bytes so CRLF line endings survive.
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise OpError(f"failed to read {path}: {e}") from e


def load_env_file(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    try:
        values = dotenv_values(path, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise OpError(f"failed to load {path}: {e}") from e
    return {k: v for k, v in values.items() if v is not None}


def inject_env_variables(text: str, env: Mapping[str, str]) -> str:
    def _sub(m: re.Match[str]) -> str:
        val = env.get(m.group(1))
        return m.group(0) if val is None else val

    return _PLACEHOLDER_RE.sub(_sub, text)


def inject_js_code(text: str, *, base_dir: Path) -> str:
    out: list[str] = []
    for line in text.split("\n"):
        m = _JS_CODE_RE.match(line)
        if not m:
            out.append(line)
            continue
        js_path = base_dir / m.group("name").strip()
        try:
            code = _read_utf8(js_path)
        except OSError as e:
            raise OpError(f"failed to read {js_path}: {e}") from e
        indent = m.group("indent")
        out.append(f"{indent}jsCode: |")
        out.extend(f"{indent}{_BLOCK_INDENT}{js_line}" for js_line in code.split("\n"))
    return "\n".join(out)


def render_workflow_yaml(paths: WorkflowPaths) -> str:
    try:
        text = _read_utf8(paths.yaml_path)
    except FileNotFoundError as e:
        raise OpError(f"{WORKFLOW_FILE} not found in {paths.root}") from e
    except OSError as e:
        raise OpError(f"failed to read {paths.yaml_path}: {e}") from e
    text = inject_js_code(text, base_dir=paths.yaml_path.parent)
    return inject_env_variables(text, load_env_file(paths.env_path))


def read_cached_json(paths: WorkflowPaths) -> bytes | None:
    try:
        return paths.cache_path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise OpError(f"failed to read {paths.cache_label()}: {e}") from e


def write_cached_json(paths: WorkflowPaths, data: bytes) -> Path:
    try:
        paths.cache_dir.mkdir(parents=True, exist_ok=True)
        paths.cache_path.write_bytes(data)
    except OSError as e:
        raise OpError(f"failed to write {paths.cache_label()}: {e}") from e
    return paths.cache_path
