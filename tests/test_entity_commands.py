import argparse
import io
import json
from pathlib import Path

import pytest

from n8nctl.cli_shared import ConfigError, GlobalOpts, OpError, UsageError
from n8nctl.entity_commands import (
    cmd_action_schema,
    cmd_entity_action,
    cmd_entity_help,
)
from n8nctl.http_client import WORKFLOW_ONLY_ACTIONS, build_api_call
from n8nctl.registry import ENTITIES

BASE = "https://n8n.example.com"


def _g(tmp_path: Path, config_path: Path, *, pretty: bool = True) -> GlobalOpts:
    return GlobalOpts(config_path=config_path, workdir=tmp_path, pretty=pretty, quiet=False)


def _args(entity: str, action: str | None, resource_id: str | None = None, **extra) -> argparse.Namespace:
    return argparse.Namespace(
        entity=entity,
        action=action,
        resource_id=resource_id,
        data=extra.pop("data", None),
        schema=extra.pop("schema", False),
        **extra,
    )


def _expected(entity: str, action: str) -> tuple[str, str]:
    root = f"{BASE}/api/v1/{entity}"
    return {
        "list": ("GET", root),
        "create": ("POST", root),
        "deploy": ("POST", root),
        "get": ("GET", f"{root}/42"),
        "update": ("PATCH", f"{root}/42"),
        "delete": ("DELETE", f"{root}/42"),
        "activate": ("POST", f"{root}/42/activate"),
        "deactivate": ("POST", f"{root}/42/deactivate"),
    }[action]


def test_build_api_call_covers_every_registry_pair():
    for entity, actions in ENTITIES.items():
        for action in actions:
            if action in ("preview", "diff"):
                with pytest.raises(UsageError):
                    build_api_call(entity=entity, action=action, resource_id="42", base_url=BASE)
                continue
            call = build_api_call(entity=entity, action=action, resource_id="42", base_url=BASE)
            assert (call.method, call.url) == _expected(entity, action), f"{entity} {action}"


def test_build_api_call_rejects_deploy_outside_workflows():
    with pytest.raises(UsageError, match="deploy not supported for users"):
        build_api_call(entity="users", action="deploy", resource_id=None, base_url=BASE)


def test_build_api_call_tolerates_trailing_slash_on_base_url():
    call = build_api_call(entity="tags", action="get", resource_id="7", base_url=BASE + "/")
    assert call.url == f"{BASE}/api/v1/tags/7"


def test_cmd_entity_action_sends_documented_request_for_every_api_pair(
    monkeypatch, capsys, tmp_path, seeded_config
):
    calls: list[dict[str, str]] = []

    def fake_api_request(*, method: str, url: str, api_token: str, body: str = "") -> bytes:
        calls.append({"method": method, "url": url, "api_token": api_token, "body": body})
        return b'{"ok":true}'

    monkeypatch.setattr("n8nctl.entity_commands.api_request", fake_api_request)
    g = _g(tmp_path, seeded_config)

    for entity, actions in ENTITIES.items():
        for action in actions:
            if action in WORKFLOW_ONLY_ACTIONS or (entity == "workflows" and action == "create"):
                continue
            calls.clear()
            args = _args(entity, action, "42", data='{"name":"x"}')
            assert cmd_entity_action(args, g) == 0
            assert len(calls) == 1
            assert (calls[0]["method"], calls[0]["url"]) == _expected(entity, action)
            assert calls[0]["api_token"] == "tok-123"
            if action in ("create", "update"):
                assert calls[0]["body"] == '{"name":"x"}'
            else:
                assert calls[0]["body"] == ""
    capsys.readouterr()


def test_cmd_entity_action_requires_id_before_config_or_network(monkeypatch, tmp_path, config_path):
    def boom(**_kwargs):
        raise AssertionError("network must not be touched")

    monkeypatch.setattr("n8nctl.entity_commands.api_request", boom)
    # No config file exists; the ID check must fire first.
    with pytest.raises(UsageError, match="action 'get' requires an ID parameter"):
        cmd_entity_action(_args("users", "get"), _g(tmp_path, config_path))
    with pytest.raises(UsageError, match="requires an ID"):
        cmd_entity_action(_args("workflows", "activate", "  "), _g(tmp_path, config_path))


def test_cmd_entity_action_without_config_points_to_login(monkeypatch, tmp_path, config_path):
    monkeypatch.setattr("n8nctl.entity_commands.api_request", lambda **_k: b"{}")
    with pytest.raises(ConfigError, match="n8nctl login"):
        cmd_entity_action(_args("users", "list"), _g(tmp_path, config_path))


def test_cmd_entity_action_requires_action(tmp_path, config_path):
    with pytest.raises(UsageError, match="users requires an action"):
        cmd_entity_action(_args("users", None), _g(tmp_path, config_path))


def test_cmd_entity_action_unknown_action(tmp_path, config_path):
    with pytest.raises(UsageError, match="unknown action for users: preview"):
        cmd_entity_action(_args("users", "preview"), _g(tmp_path, config_path))


def test_cmd_entity_action_prints_pretty_json(monkeypatch, capsys, tmp_path, seeded_config):
    monkeypatch.setattr(
        "n8nctl.entity_commands.api_request",
        lambda **_k: b'{"data":[{"id":"1","name":"wf"}]}',
    )
    assert cmd_entity_action(_args("workflows", "list"), _g(tmp_path, seeded_config)) == 0
    out = capsys.readouterr().out
    assert out.startswith("{\n  ")
    assert json.loads(out) == {"data": [{"id": "1", "name": "wf"}]}


def test_cmd_entity_action_plain_json(monkeypatch, capsys, tmp_path, seeded_config):
    monkeypatch.setattr("n8nctl.entity_commands.api_request", lambda **_k: b'{"a": [1, 2]}')
    g = _g(tmp_path, seeded_config, pretty=False)
    assert cmd_entity_action(_args("tags", "list"), g) == 0
    assert capsys.readouterr().out == '{"a":[1,2]}\n'


def test_cmd_entity_action_prints_raw_non_json_body(monkeypatch, capsys, tmp_path, seeded_config):
    monkeypatch.setattr("n8nctl.entity_commands.api_request", lambda **_k: b"plain text")
    assert cmd_entity_action(_args("tags", "list"), _g(tmp_path, seeded_config)) == 0
    assert capsys.readouterr().out == "plain text\n"


def test_cmd_entity_action_delete_reports_success(monkeypatch, capsys, tmp_path, seeded_config):
    monkeypatch.setattr("n8nctl.entity_commands.api_request", lambda **_k: b"")
    assert cmd_entity_action(_args("users", "delete", "u-1"), _g(tmp_path, seeded_config)) == 0
    assert capsys.readouterr().out == "users delete successful\n"


@pytest.mark.parametrize("action,resource_id", [("delete", "1"), ("create", None), ("update", "1")])
def test_cmd_entity_action_api_error_is_not_success(
    monkeypatch, capsys, tmp_path, seeded_config, action, resource_id
):
    def failing(**_kwargs):
        raise OpError('API error: failed: status=404 body={"message":"not found"}')

    monkeypatch.setattr("n8nctl.entity_commands.api_request", failing)
    args = _args("variables", action, resource_id, data="{}")
    with pytest.raises(OpError, match="status=404"):
        cmd_entity_action(args, _g(tmp_path, seeded_config))
    assert "successful" not in capsys.readouterr().out


def test_cmd_entity_action_rejects_invalid_data(monkeypatch, tmp_path, seeded_config):
    monkeypatch.setattr("n8nctl.entity_commands.api_request", lambda **_k: b"{}")
    with pytest.raises(UsageError, match="invalid --data JSON"):
        cmd_entity_action(_args("tags", "create", data="{nope"), _g(tmp_path, seeded_config))


def test_cmd_entity_action_reads_body_from_stdin(monkeypatch, capsys, tmp_path, seeded_config):
    seen: dict[str, str] = {}

    def fake_api_request(**kwargs):
        seen.update(kwargs)
        return b'{"id":"t1"}'

    monkeypatch.setattr("n8nctl.entity_commands.api_request", fake_api_request)
    monkeypatch.setattr("sys.stdin", io.StringIO('  {"name": "ops"}\n'))
    assert cmd_entity_action(_args("tags", "update", "t1"), _g(tmp_path, seeded_config)) == 0
    assert seen["body"] == '{"name": "ops"}'
    assert seen["method"] == "PATCH"
    assert "Enter JSON data for update:" in capsys.readouterr().err


def test_cmd_entity_action_empty_stdin_is_usage_error(monkeypatch, tmp_path, seeded_config):
    monkeypatch.setattr("n8nctl.entity_commands.api_request", lambda **_k: b"{}")
    monkeypatch.setattr("sys.stdin", io.StringIO("\n"))
    with pytest.raises(UsageError, match="missing JSON body"):
        cmd_entity_action(_args("projects", "create"), _g(tmp_path, seeded_config))


def test_schema_flag_prints_example_without_config(capsys, tmp_path, config_path):
    args = _args("credentials", "create", schema=True)
    assert cmd_entity_action(args, _g(tmp_path, config_path)) == 0
    out = capsys.readouterr().out
    assert out.startswith("Schema for credentials create:\n")
    assert json.loads(out.split("\n", 1)[1])["type"] == "httpHeaderAuth"


def test_schema_flag_without_schema(capsys, tmp_path, config_path):
    assert cmd_action_schema(_args("tags", "list"), _g(tmp_path, config_path)) == 0
    assert capsys.readouterr().out == "No schema available for action list on entity tags\n"


def test_entity_help_lists_actions_and_optional_schemas(capsys, tmp_path, config_path):
    g = _g(tmp_path, config_path)
    assert cmd_entity_help(argparse.Namespace(entity="workflows", schema=False), g) == 0
    out = capsys.readouterr().out
    assert out.startswith("Available actions for workflows:\n")
    assert "  preview " in out
    assert "Example schema:" not in out

    assert cmd_entity_help(argparse.Namespace(entity="workflows", schema=True), g) == 0
    out = capsys.readouterr().out
    assert "Example schema:" in out
    assert '      "name": "My Workflow",' in out


def test_workflows_create_writes_starter_yaml_without_network(monkeypatch, tmp_path, config_path):
    def boom(**_kwargs):
        raise AssertionError("network must not be touched")

    monkeypatch.setattr("n8nctl.entity_commands.api_request", boom)
    assert cmd_entity_action(_args("workflows", "create"), _g(tmp_path, config_path)) == 0
    assert (tmp_path / "workflow.yaml").read_text(encoding="utf-8").startswith("name: Sample Workflow\n")
