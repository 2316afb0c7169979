from __future__ import annotations

import argparse
import sys
from typing import Mapping

from . import workflow_commands
from .cli_shared import (
    GlobalOpts,
    UsageError,
    _eprint,
    _load_json_text,
    _print_response_body,
    _status,
)
from .config_store import Config, load_config
from .external_tools import build_workflow_tools
from .http_client import WORKFLOW_ONLY_ACTIONS, WORKFLOWS, api_request, build_api_call
from .registry import Action, entity_actions, lookup_action


def _config(g: GlobalOpts) -> Config:
    return load_config(g.config_path)


def _read_body(args: argparse.Namespace, *, prompt: str) -> str:
    data = getattr(args, "data", None)
    if data is not None:
        return _load_json_text(raw=data, label="--data JSON")
    _eprint(prompt)
    raw = sys.stdin.read().strip()
    if not raw:
        raise UsageError("missing JSON body (pass --data or pipe JSON on stdin)")
    return _load_json_text(raw=raw, label="JSON body from stdin")


def _format_entity_help(entity: str, actions: Mapping[str, Action], *, show_schema: bool) -> str:
    lines = [f"Available actions for {entity}:"]
    for name, a in actions.items():
        suffix = "  (requires ID)" if a.needs_id else ""
        lines.append(f"  {name:<10} {a.description}{suffix}")
        if show_schema and a.schema:
            lines.append("    Example schema:")
            lines.extend(f"      {s}" for s in a.schema.split("\n"))
    lines += [
        "",
        "Usage:",
        f"  n8nctl {entity} <action> [id] [--data JSON]",
        "",
        "Flags:",
        "  --data    JSON request body for create/update (otherwise read from stdin)",
        "  --schema  Show the example payload for the action (use with --help or an action)",
    ]
    return "\n".join(lines) + "\n"


def cmd_entity_help(args: argparse.Namespace, g: GlobalOpts) -> int:
    del g
    actions = entity_actions(args.entity)
    sys.stdout.write(_format_entity_help(args.entity, actions, show_schema=bool(args.schema)))
    return 0


def cmd_action_schema(args: argparse.Namespace, g: GlobalOpts) -> int:
    del g
    a = lookup_action(args.entity, args.action)
    if not a.schema:
        sys.stdout.write(f"No schema available for action {args.action} on entity {args.entity}\n")
        return 0
    sys.stdout.write(f"Schema for {args.entity} {args.action}:\n{a.schema}\n")
    return 0


def _cmd_workflow_action(args: argparse.Namespace, g: GlobalOpts) -> int:
    action = args.action
    if action == "create":
        return workflow_commands.create_starter(g)
    tools = build_workflow_tools()
    if action == "preview":
        if not workflow_commands.preview(g, tools):
            _status(g, "Preview aborted by user.")
        return 0
    if action == "diff":
        workflow_commands.diff(g, tools)
        return 0
    raw = workflow_commands.deploy(g, tools, load_config=lambda: _config(g))
    if raw is not None:
        _print_response_body(raw, pretty=g.pretty)
    return 0


def cmd_entity_action(args: argparse.Namespace, g: GlobalOpts) -> int:
    entity = args.entity
    action = (args.action or "").strip()
    if not action:
        raise UsageError(f"{entity} requires an action (see `n8nctl {entity} --help`)")
    a = lookup_action(entity, action)
    if getattr(args, "schema", False):
        return cmd_action_schema(args, g)

    resource_id = (getattr(args, "resource_id", None) or "").strip() or None
    if a.needs_id and not resource_id:
        raise UsageError(f"action '{action}' requires an ID parameter")

    if action in WORKFLOW_ONLY_ACTIONS and entity != WORKFLOWS:
        raise UsageError(f"{action} not supported for {entity}")
    if entity == WORKFLOWS and action in ("create",) + WORKFLOW_ONLY_ACTIONS:
        return _cmd_workflow_action(args, g)

    cfg = _config(g)
    body = ""
    if action == "create":
        body = _read_body(args, prompt="Enter JSON data for creation:")
    elif action == "update":
        body = _read_body(args, prompt="Enter JSON data for update:")

    call = build_api_call(entity=entity, action=action, resource_id=resource_id, base_url=cfg.base_url)
    raw = api_request(method=call.method, url=call.url, api_token=cfg.api_token, body=body)
    if action == "delete":
        sys.stdout.write(f"{entity} {action} successful\n")
        return 0
    _print_response_body(raw, pretty=g.pretty)
    return 0
