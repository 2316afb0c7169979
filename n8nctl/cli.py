from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Any, Mapping

import click
import typer

from . import __version__
from . import auth_inputs
from .cli_shared import (
    N8NCTL_PLAIN_JSON,
    ConfigError,
    GlobalOpts,
    OpError,
    UsageError,
    _env_or_none,
    _eprint,
    _rich_error,
    _truthy,
)
from .config_store import Config, resolve_config_path, save_config
from .entity_commands import cmd_entity_action, cmd_entity_help
from .registry import ENTITIES, Action

_ROOT_HELP = """Manage n8n workflows and resources from the command line.

Run `n8nctl login` once to store the API base URL and token in
~/.n8nctl/config.json (override with --config or N8NCTL_CONFIG).

Workflows are authored as workflow.yaml; ${{ NAME }} placeholders are filled
from .env and `jsCode: file(name)` lines inline script files.

Requires yq for YAML to JSON conversion, and diff (or colordiff) for diffs.
"""


class _EntityTyperGroup(typer.core.TyperGroup):
    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if not args:
            _echo_help(ctx)
            ctx.exit(1)
        return super().parse_args(ctx, args)

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        name = args[0] if args else ""
        if name and not name.startswith("-") and self.get_command(ctx, name) is None:
            _render_usage_error(message=f"unknown entity: {name}", ctx=ctx)
            ctx.exit(1)
        return super().resolve_command(ctx, args)


def _echo_help(ctx: click.Context) -> None:
    # Rich-formatted help is printed directly and returns no text.
    text = ctx.get_help()
    if text:
        typer.echo(text)


def _render_usage_error(*, message: str, ctx: click.Context | None = None) -> None:
    _rich_error(message)
    if isinstance(ctx, click.Context):
        _eprint(f"Try '{ctx.command_path} --help' for help.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"n8nctl {__version__}")
        raise typer.Exit(code=0)


app = typer.Typer(
    name="n8nctl",
    help=_ROOT_HELP,
    add_completion=False,
    cls=_EntityTyperGroup,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def app_callback(
    ctx: typer.Context,
    config: str | None = typer.Option(
        None,
        "--config",
        help="Path to config JSON (default: ~/.n8nctl/config.json; env override: N8NCTL_CONFIG)",
    ),
    plain_json: bool = typer.Option(
        False,
        "--plain-json",
        help=f"Emit compact JSON output (env override: {N8NCTL_PLAIN_JSON})",
    ),
    quiet: bool = typer.Option(False, "--quiet", help="Suppress stderr status notes"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    del version
    ctx.obj = {
        "g": GlobalOpts(
            config_path=resolve_config_path(config),
            workdir=Path.cwd(),
            pretty=not (plain_json or _truthy(os.environ.get(N8NCTL_PLAIN_JSON))),
            quiet=quiet,
        )
    }


def _ctx_global(ctx: typer.Context) -> GlobalOpts:
    obj = ctx.find_root().obj
    if isinstance(obj, dict) and isinstance(obj.get("g"), GlobalOpts):
        return obj["g"]
    return GlobalOpts(config_path=resolve_config_path(None), workdir=Path.cwd())


def _invoke(ctx: typer.Context, func: Any, **kwargs: Any) -> None:
    g = _ctx_global(ctx)
    args = argparse.Namespace(**kwargs)
    try:
        code = int(func(args, g))
    except UsageError as e:
        _render_usage_error(message=str(e), ctx=ctx)
        raise typer.Exit(code=1)
    except (ConfigError, OpError) as e:
        _rich_error(str(e))
        raise typer.Exit(code=1)

    if code:
        raise typer.Exit(code=code)


def _prompt(text: str) -> str:
    try:
        return str(typer.prompt(text, default="", show_default=False, err=True))
    except click.exceptions.Abort:
        return ""


def cmd_login(args: argparse.Namespace, g: GlobalOpts) -> int:
    try:
        inputs = auth_inputs.resolve_login_inputs(
            base_url=args.base_url,
            api_token=args.token,
            env_or_none=_env_or_none,
            prompt=_prompt,
        )
    except auth_inputs.AuthInputError as e:
        raise UsageError(str(e)) from e
    save_config(g.config_path, Config(api_token=inputs.api_token, base_url=inputs.base_url))
    sys.stdout.write(f"Login successful, credentials saved to {g.config_path}\n")
    return 0


@app.command("login", help="Store the API base URL and token in the config file.")
def login(
    ctx: typer.Context,
    base_url: str | None = typer.Option(None, "--base-url", help="API base URL, e.g. https://n8n.example.com"),
    token: str | None = typer.Option(None, "--token", help="API token (see <base-url>/settings/api)"),
) -> None:
    _invoke(ctx, cmd_login, base_url=base_url, token=token)


@app.command("help", help="Show this help and exit.")
def help_command(ctx: typer.Context) -> None:
    _echo_help(ctx.find_root())


def _entity_summary(entity: str, actions: Mapping[str, Action]) -> str:
    return f"{entity.replace('-', ' ').capitalize()}: {', '.join(actions)}."


def _register_entity_command(entity: str, actions: Mapping[str, Action]) -> None:
    @app.command(entity, help=_entity_summary(entity, actions), add_help_option=False)
    def _entity_command(
        ctx: typer.Context,
        action: str | None = typer.Argument(None, help="Action to run (see --help)"),
        resource_id: str | None = typer.Argument(None, metavar="[ID]", help="Resource ID for actions that need one"),
        data: str | None = typer.Option(None, "--data", help="JSON request body for create/update"),
        schema: bool = typer.Option(False, "--schema", help="Show the example payload for the action"),
        show_help: bool = typer.Option(False, "--help", "-h", help="List available actions and exit"),
    ) -> None:
        if show_help or action == "help":
            _invoke(ctx, cmd_entity_help, entity=entity, schema=schema)
            return
        _invoke(
            ctx,
            cmd_entity_action,
            entity=entity,
            action=action,
            resource_id=resource_id,
            data=data,
            schema=schema,
        )


for _entity, _actions in ENTITIES.items():
    _register_entity_command(_entity, _actions)


def main() -> None:
    app(prog_name="n8nctl")


if __name__ == "__main__":
    main()
