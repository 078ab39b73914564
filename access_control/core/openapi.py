"""OpenAPI schema customizations.

Adds the ``X-API-Key`` security scheme, applies it to every operation except
the health check, and describes the route tags.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Sessions", "description": "Issue, validate and revoke session tokens."},
    {"name": "Limits", "description": "Per-identity request history and plan budgets."},
    {"name": "Health", "description": "Liveness and store reachability."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Wrap ``app.openapi`` so the generated schema carries auth metadata."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        schemes = schema.setdefault("components", {}).setdefault("securitySchemes", {})
        schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Key of the calling backend (see APP_API_KEYS).",
            },
        )
        schema.setdefault("security", [{"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        known = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS_METADATA if t["name"] not in known)

        for path, operations in schema.get("paths", {}).items():
            if path == "/health":
                for operation in operations.values():
                    if isinstance(operation, dict):
                        operation["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
