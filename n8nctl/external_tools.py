from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from .cli_shared import OpError


class Converter(Protocol):
    def convert(self, yaml_text: str) -> bytes: ...


class Differ(Protocol):
    def diff(self, old: bytes, new: bytes) -> DiffResult: ...


@dataclass(frozen=True)
class DiffResult:
    has_differences: bool
    rendered: str


def _run(cmd: Sequence[str], *, stdin: bytes | None = None) -> subprocess.CompletedProcess[bytes]:
    try:
        return subprocess.run(list(cmd), input=stdin, capture_output=True, check=False)
    except FileNotFoundError as e:
        raise OpError(f"{cmd[0]} not found on PATH (install it and retry)") from e
    except OSError as e:
        raise OpError(f"failed to run {cmd[0]}: {e}") from e


def _stderr_text(proc: subprocess.CompletedProcess[bytes]) -> str:
    return (proc.stderr or b"").decode("utf-8", errors="replace").strip()


@dataclass(frozen=True)
class YqConverter:
    command: tuple[str, ...] = ("yq", ".", "-")

    def convert(self, yaml_text: str) -> bytes:
        proc = _run(self.command, stdin=yaml_text.encode("utf-8"))
        if proc.returncode != 0:
            raise OpError(f"yq failed: exit status {proc.returncode}: {_stderr_text(proc)}")
        return proc.stdout


def _default_diff_tool() -> str:
    return "colordiff" if shutil.which("colordiff") else "diff"


@dataclass(frozen=True)
class UnifiedDiffer:
    tool: str = ""

    def diff(self, old: bytes, new: bytes) -> DiffResult:
        tool = self.tool or _default_diff_tool()
        with tempfile.TemporaryDirectory(prefix="n8nctl-diff-") as tmp:
            old_path = Path(tmp) / "old-workflow.json"
            new_path = Path(tmp) / "new-workflow.json"
            old_path.write_bytes(old)
            new_path.write_bytes(new)
            proc = _run([tool, "-u", os.fspath(old_path), os.fspath(new_path)])
        rendered = (proc.stdout or b"").decode("utf-8", errors="replace")
        if proc.returncode == 0:
            return DiffResult(has_differences=False, rendered=rendered)
        if proc.returncode == 1:
            return DiffResult(has_differences=True, rendered=rendered)
        raise OpError(f"{tool} failed: exit status {proc.returncode}: {_stderr_text(proc)}")


@dataclass(frozen=True)
class WorkflowTools:
    converter: Converter
    differ: Differ


def build_workflow_tools() -> WorkflowTools:
    return WorkflowTools(converter=YqConverter(), differ=UnifiedDiffer())
