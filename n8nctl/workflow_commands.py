from __future__ import annotations

import sys
from typing import Callable

import click
import typer

from .cli_shared import GlobalOpts, OpError, _status
from .config_store import Config
from .external_tools import DiffResult, WorkflowTools
from .http_client import WORKFLOWS, api_request, build_api_call
from .workflow_files import (
    WorkflowPaths,
    read_cached_json,
    render_workflow_yaml,
    write_cached_json,
    write_starter_workflow,
)

Confirm = Callable[[str], bool]


def _confirm(message: str) -> bool:
    try:
        return bool(typer.confirm(message, default=False, err=True))
    except click.exceptions.Abort:
        return False


def workflow_paths(g: GlobalOpts) -> WorkflowPaths:
    return WorkflowPaths(root=g.workdir)


def create_starter(g: GlobalOpts) -> int:
    path = write_starter_workflow(workflow_paths(g))
    _status(g, f"Wrote starter workflow to {path.name}")
    return 0


def _show_diff(g: GlobalOpts, tools: WorkflowTools, old: bytes, new: bytes) -> DiffResult:
    result = tools.differ.diff(old, new)
    if result.has_differences:
        sys.stdout.write(result.rendered)
        if result.rendered and not result.rendered.endswith("\n"):
            sys.stdout.write("\n")
    else:
        _status(g, "No differences detected.")
    return result


def preview(g: GlobalOpts, tools: WorkflowTools, *, confirm: Confirm = _confirm) -> bool:
    """Render and convert workflow.yaml, diff it against the cache and offer to save it.

    Returns True only when the user confirmed and the cache was rewritten.
    """
    paths = workflow_paths(g)
    new_json = tools.converter.convert(render_workflow_yaml(paths))
    old_json = read_cached_json(paths)

    _status(g, "Workflow JSON preview:")
    sys.stdout.write(new_json.decode("utf-8", errors="replace").rstrip("\n") + "\n")

    if old_json is None:
        _status(g, f"No existing {paths.cache_label()} found, skipping diff.")
    else:
        _status(g, "Showing diff between existing and new workflow JSON:")
        _show_diff(g, tools, old_json, new_json)

    if not confirm(f"Write this JSON to {paths.cache_label()}?"):
        _status(g, "Aborted, no changes written.")
        return False
    write_cached_json(paths, new_json)
    _status(g, f"Saved to {paths.cache_label()}")
    return True


def diff(g: GlobalOpts, tools: WorkflowTools) -> DiffResult:
    paths = workflow_paths(g)
    if not paths.yaml_path.exists():
        raise OpError(f"{paths.yaml_path.name} not found in {paths.root}")
    old_json = read_cached_json(paths)
    if old_json is None:
        raise OpError(
            f"{paths.cache_label()} does not exist, please run preview and save the JSON first"
        )
    new_json = tools.converter.convert(render_workflow_yaml(paths))
    return _show_diff(g, tools, old_json, new_json)


def deploy(
    g: GlobalOpts,
    tools: WorkflowTools,
    *,
    load_config: Callable[[], Config],
    confirm: Confirm = _confirm,
) -> bytes | None:
    """Run the preview flow and POST the confirmed JSON as a new workflow.

    Returns the API response body, or None when the user declined.
    """
    cfg = load_config()
    if not preview(g, tools, confirm=confirm):
        _status(g, "Deploy aborted by user.")
        return None
    paths = workflow_paths(g)
    body = read_cached_json(paths)
    if body is None:
        raise OpError(f"could not read {paths.cache_label()}")
    try:
        payload = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise OpError(f"failed to read {paths.cache_label()}: {e}") from e
    call = build_api_call(entity=WORKFLOWS, action="deploy", resource_id=None, base_url=cfg.base_url)
    return api_request(
        method=call.method,
        url=call.url,
        api_token=cfg.api_token,
        body=payload,
    )
