from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .cli_shared import UsageError


@dataclass(frozen=True)
class Action:
    description: str
    needs_id: bool = False
    schema: str = ""


WORKFLOW_CREATE_SCHEMA = """{
  "name": "My Workflow",
  "nodes": [
    {
      "id": "1",
      "name": "Start",
      "type": "n8n-nodes-base.manualTrigger",
      "typeVersion": 1,
      "position": [250, 300]
    }
  ],
  "connections": {},
  "active": false
}"""

CREDENTIAL_CREATE_SCHEMA = """{
  "name": "Joe's GitHub Credentials",
  "type": "httpHeaderAuth",
  "data": {
    "name": "Authorization",
    "value": "Bearer ghp_xxxxyyyyyyyyyy"
  },
  "nodesAccess": [
    {
      "nodeType": "n8n-nodes-base.httpRequest"
    }
  ]
}"""


def _crud(singular: str, article: str = "a") -> dict[str, Action]:
    return {
        "list": Action(f"List {singular}s"),
        "create": Action(f"Create {article} {singular}"),
        "get": Action(f"Get {article} {singular} by ID", needs_id=True),
        "update": Action(f"Update {article} {singular} by ID", needs_id=True),
        "delete": Action(f"Delete {article} {singular} by ID", needs_id=True),
    }


_ENTITIES: dict[str, dict[str, Action]] = {
    "users": {
        "list": Action("List all users"),
        "create": Action("Create a new user"),
        "get": Action("Get a user by ID", needs_id=True),
        "update": Action("Update a user by ID", needs_id=True),
        "delete": Action("Delete a user by ID", needs_id=True),
    },
    "audit": {
        "create": Action("Generate a security audit"),
    },
    "executions": {
        "list": Action("List executions"),
        "get": Action("Get an execution by ID", needs_id=True),
        "delete": Action("Delete an execution by ID", needs_id=True),
    },
    "workflows": {
        "list": Action("List workflows"),
        "get": Action("Get a workflow by ID", needs_id=True),
        "create": Action(
            "Write a starter workflow.yaml in the current directory",
            schema=WORKFLOW_CREATE_SCHEMA,
        ),
        "update": Action("Update a workflow by ID", needs_id=True),
        "delete": Action("Delete a workflow by ID", needs_id=True),
        "activate": Action("Activate a workflow by ID", needs_id=True),
        "deactivate": Action("Deactivate a workflow by ID", needs_id=True),
        "preview": Action("Preview workflow JSON from YAML (show diff, confirm to save)"),
        "diff": Action("Show diff between saved and newly rendered workflow JSON"),
        "deploy": Action(
            "Preview, confirm and deploy the workflow",
            schema="(No schema - uses .out/workflow.json from preview)",
        ),
    },
    "credentials": {
        **_crud("credential"),
        "create": Action("Create a credential", schema=CREDENTIAL_CREATE_SCHEMA),
    },
    "tags": _crud("tag"),
    "source-control": {
        "list": Action("List source control configs"),
        "get": Action("Get a source control config by ID", needs_id=True),
        "update": Action("Update a source control config by ID", needs_id=True),
    },
    "variables": _crud("variable"),
    "projects": _crud("project"),
}

ENTITIES: Mapping[str, Mapping[str, Action]] = MappingProxyType(
    {name: MappingProxyType(actions) for name, actions in _ENTITIES.items()}
)


def entity_actions(entity: str) -> Mapping[str, Action]:
    actions = ENTITIES.get(entity)
    if actions is None:
        raise UsageError(f"unknown entity: {entity} (available: {', '.join(ENTITIES)})")
    return actions


def lookup_action(entity: str, action: str) -> Action:
    actions = entity_actions(entity)
    a = actions.get(action)
    if a is None:
        raise UsageError(
            f"unknown action for {entity}: {action} (available: {', '.join(actions)})"
        )
    return a
