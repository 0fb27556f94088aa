"""Minimal deterministic OpenAPI spec for the HTTP surface.

Routes are listed declaratively; permissions are documented per operation
under ``x-required-permissions`` as ``resource.action`` strings.
"""
from typing import Any, Dict, List, Optional, Tuple

from .constants.permissions import RES_INVENTORY, RES_TIME

__all__ = ["build_openapi_spec", "ROUTES"]

# (path, method, summary, required permission or None, cached list)
ROUTES: List[Tuple[str, str, str, Optional[str], bool]] = [
    ("/api/login", "post", "Login with employee id and password", None, False),
    ("/api/auth/session", "get", "Validate session and refresh permissions", None, False),
    ("/api/check-auth", "get", "Lightweight login probe", None, False),
    ("/api/logout", "post", "End session", None, False),
    ("/api/inventory/items", "get", "List articles", f"{RES_INVENTORY}.view", True),
    ("/api/inventory/items", "post", "Create article", f"{RES_INVENTORY}.edit", False),
    ("/api/inventory/categories", "get", "List categories", f"{RES_INVENTORY}.view", True),
    ("/api/inventory/references", "get", "Locations, movement types and articles", f"{RES_INVENTORY}.view", True),
    ("/api/inventory/movements", "get", "Filtered, paginated movements", f"{RES_INVENTORY}.view", True),
    ("/api/inventory/movements", "post", "Book a movement or transfer", f"{RES_INVENTORY}.edit", False),
    ("/api/inventory/stock", "get", "Stock report per location", f"{RES_INVENTORY}.view", True),
    ("/api/time/entry", "post", "Record working time", f"{RES_TIME}.edit", False),
    ("/api/time/locations", "get", "Work sites", f"{RES_TIME}.view", False),
    ("/api/time/history/{employeeId}", "get", "Time entries of an employee", f"{RES_TIME}.view", False),
    ("/api/time/entries", "delete", "Delete time entries by timestamp", f"{RES_TIME}.edit", False),
]

QUERY_PARAMS = {
    "/api/inventory/movements": ["location", "type", "article", "dateFrom", "dateTo", "page", "limit"],
    "/api/inventory/stock": ["location", "article", "page", "limit"],
}


def _operation(path: str, method: str, summary: str, permission: Optional[str], cached: bool) -> Dict[str, Any]:
    ok: Dict[str, Any] = {"description": "OK"}
    if cached:
        ok["headers"] = {"ETag": {"schema": {"type": "string"}}}
    responses: Dict[str, Any] = {"200": ok, "default": {"$ref": "#/components/responses/Error"}}
    if cached:
        responses["304"] = {"description": "Not Modified"}
    if method == "post" and permission:
        responses["201"] = {"description": "Created"}
    op: Dict[str, Any] = {"summary": summary, "responses": responses}
    if permission:
        op["x-required-permissions"] = [permission]
        op["security"] = [{"SessionCookie": []}]
    params = [
        {"name": n, "in": "query", "schema": {"type": "string"}}
        for n in QUERY_PARAMS.get(path, []) if method == "get"
    ]
    if "{employeeId}" in path:
        params.append({"name": "employeeId", "in": "path", "required": True, "schema": {"type": "string"}})
    if params:
        op["parameters"] = params
    rid = path.strip("/").replace("/", "_").replace("{", "").replace("}", "")
    op["operationId"] = f"{method}_{rid}"
    segment = path.split("/")[2]
    op["tags"] = [segment.capitalize() if segment in ("inventory", "time") else "Auth"]
    return op


def build_openapi_spec() -> Dict[str, Any]:
    paths: Dict[str, Any] = {}
    for path, method, summary, permission, cached in ROUTES:
        paths.setdefault(path, {})[method] = _operation(path, method, summary, permission, cached)
    tags = sorted({op["tags"][0] for ops in paths.values() for op in ops.values()})
    return {
        "openapi": "3.0.3",
        "info": {"title": "Lagerbuch API", "version": "0.1.0"},
        "paths": paths,
        "components": {
            "schemas": {
                "Error": {
                    "type": "object",
                    "properties": {"success": {"type": "boolean"}, "message": {"type": "string"}},
                    "required": ["success", "message"],
                },
                "Pagination": {
                    "type": "object",
                    "properties": {
                        "page": {"type": "integer"},
                        "limit": {"type": "integer"},
                        "totalRows": {"type": "integer"},
                        "totalPages": {"type": "integer"},
                        "returned": {"type": "integer"},
                        "hasMore": {"type": "boolean"},
                    },
                },
            },
            "responses": {
                "Error": {
                    "description": "Error",
                    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}},
                },
            },
            "securitySchemes": {
                "SessionCookie": {"type": "apiKey", "in": "cookie", "name": "lagerbuch_session"},
            },
        },
        "tags": [{"name": t, "description": f"{t} endpoints"} for t in tags],
    }
