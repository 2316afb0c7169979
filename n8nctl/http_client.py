from __future__ import annotations

from dataclasses import dataclass
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .cli_shared import OpError, UsageError

API_KEY_HEADER = "X-N8N-API-KEY"
API_PREFIX = "/api/v1"

WORKFLOWS = "workflows"
WORKFLOW_ONLY_ACTIONS = ("preview", "diff", "deploy")


def api_url(base_url: str, entity: str, resource_id: str | None = None, action: str | None = None) -> str:
    parts = [f"{base_url.rstrip('/')}{API_PREFIX}/{entity}"]
    if resource_id:
        parts.append(resource_id)
        if action:
            parts.append(action)
    return "/".join(parts)


def _http_request(
    *,
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None = None,
    timeout_seconds: int = 30,
) -> tuple[int, dict[str, str], bytes]:
    try:
        req = Request(url, data=body, method=str(method).upper())
    except ValueError as e:
        raise OpError(f"http request failed: {method} {url}: {e}") from e
    for k, v in headers.items():
        req.add_header(k, v)
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            status = getattr(resp, "status", 200)
            hdrs = {k.lower(): v for k, v in dict(resp.headers).items()}
            data = resp.read()
            return int(status), hdrs, data
    except HTTPError as e:
        hdrs = {k.lower(): v for k, v in dict(e.headers or {}).items()}
        data = e.read() if hasattr(e, "read") else b""
        return int(getattr(e, "code", 0) or 0), hdrs, data
    except URLError as e:
        raise OpError(f"http request failed: {method} {url}: {e}") from e


def api_request(*, method: str, url: str, api_token: str, body: str = "") -> bytes:
    """Send one authenticated request and return the raw body of a 2xx response."""
    headers = {
        API_KEY_HEADER: api_token,
        "Content-Type": "application/json",
    }
    payload = body.encode("utf-8") if body else None
    status, _hdrs, raw = _http_request(method=method, url=url, headers=headers, body=payload)
    if status < 200 or status >= 300:
        text = raw.decode("utf-8", errors="replace")
        raise OpError(f"API error: {method} {url} failed: status={status} body={text}")
    return raw


@dataclass(frozen=True)
class ApiCall:
    method: str
    url: str


def build_api_call(*, entity: str, action: str, resource_id: str | None, base_url: str) -> ApiCall:
    """Map an entity/action pair onto the REST method and URL it calls."""
    if action == "list":
        return ApiCall("GET", api_url(base_url, entity))
    if action == "create":
        return ApiCall("POST", api_url(base_url, entity))
    if action == "deploy":
        if entity != WORKFLOWS:
            raise UsageError(f"deploy not supported for {entity}")
        return ApiCall("POST", api_url(base_url, entity))
    if action in WORKFLOW_ONLY_ACTIONS:
        raise UsageError(f"{action} does not call the API directly")

    rid = (resource_id or "").strip()
    if not rid:
        raise UsageError(f"action '{action}' requires an ID parameter")
    if action == "get":
        return ApiCall("GET", api_url(base_url, entity, rid))
    if action == "update":
        return ApiCall("PATCH", api_url(base_url, entity, rid))
    if action == "delete":
        return ApiCall("DELETE", api_url(base_url, entity, rid))
    if action in ("activate", "deactivate"):
        return ApiCall("POST", api_url(base_url, entity, rid, action))
    raise UsageError(f"action {action} not implemented for entity {entity}")
