"""
OpenAPI document parsing.

Turns an OpenAPI 3.x document into OpenAPIOperation records that SpecClient
can call. Only local `$ref`s (`#/components/...`) are resolved.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import yaml

from .naming import generate_operation_id

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "patch", "delete")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True, slots=True)
class OpenAPIOperation:
    """
    Parsed OpenAPI operation.

    Attributes:
        operation_id: Unique identifier
        method: HTTP method (get, post, put, patch, delete)
        path: URL path template (e.g., /repos/{owner}/{repo})
        summary: Brief description
        description: Detailed description
        parameters: Path, query, and header parameters (refs resolved)
        request_body_schema: JSON Schema for request body
        request_body_content_type: JSON or form encoding for the body
        response_schema: Expected response schema
        tags: Operation tags; the first one names the resource group
    """

    operation_id: str
    method: str
    path: str
    summary: str = ""
    description: str = ""
    parameters: tuple[dict[str, Any], ...] = ()
    request_body_schema: dict[str, Any] | None = None
    request_body_required: bool = False
    request_body_content_type: str = JSON_CONTENT_TYPE
    response_schema: dict[str, Any] | None = None
    tags: tuple[str, ...] = ()

    @property
    def tag(self) -> str | None:
        return self.tags[0] if self.tags else None

    def parameters_in(self, location: str) -> list[dict[str, Any]]:
        """Parameters declared with `in: <location>`."""
        return [p for p in self.parameters if p.get("in") == location]

    @property
    def has_body(self) -> bool:
        return self.request_body_schema is not None

    @property
    def full_description(self) -> str:
        if self.summary:
            return self.summary
        if self.description:
            return self.description[:200]
        return f"{self.method.upper()} {self.path}"


# =============================================================================
# $ref resolution
# =============================================================================


class _RefResolver:
    """
    Simple $ref resolver for OpenAPI specs.

    Handles local references like:
    - #/components/schemas/Repository
    - #/components/parameters/owner

    Self-referencing schemas are left as their $ref.
    """

    def __init__(self, spec: Mapping[str, Any]):
        self._spec = spec
        self._cache: dict[str, Any] = {}
        self._resolving: set[str] = set()

    def resolve(self, obj: Any) -> Any:
        """Resolve $ref in an object."""
        if isinstance(obj, list):
            return [self.resolve(item) for item in obj]

        if not isinstance(obj, dict):
            return obj

        if "$ref" not in obj:
            return {k: self.resolve(v) for k, v in obj.items()}

        ref = obj["$ref"]

        if ref in self._cache:
            return self._cache[ref]

        if not isinstance(ref, str) or not ref.startswith("#/"):
            logger.warning(f"[openapi] Unsupported $ref: {ref}")
            return obj

        if ref in self._resolving:
            return obj

        current: Any = self._spec
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if isinstance(current, Mapping) and part in current:
                current = current[part]
            else:
                logger.warning(f"[openapi] Could not resolve: {ref}")
                return obj

        self._resolving.add(ref)
        try:
            resolved = self.resolve(current)
        finally:
            self._resolving.discard(ref)

        self._cache[ref] = resolved
        return resolved


# =============================================================================
# Parsing
# =============================================================================


def _request_body(resolver: _RefResolver, op: Mapping[str, Any]) -> tuple[dict | None, bool, str]:
    request_body = op.get("requestBody")
    if not request_body:
        return None, False, JSON_CONTENT_TYPE

    request_body = resolver.resolve(request_body)
    content = request_body.get("content", {})

    # Prefer JSON content
    for content_type in (JSON_CONTENT_TYPE, FORM_CONTENT_TYPE):
        if content_type in content:
            schema = content[content_type].get("schema", {})
            return schema, request_body.get("required", False), content_type

    for content_type, media in content.items():
        if content_type.endswith("+json"):
            return media.get("schema", {}), request_body.get("required", False), JSON_CONTENT_TYPE

    return {}, request_body.get("required", False), JSON_CONTENT_TYPE


def _response_schema(resolver: _RefResolver, op: Mapping[str, Any]) -> dict | None:
    responses = op.get("responses", {})
    for status in ("200", "201", "202", "default"):
        if status not in responses:
            continue
        content = resolver.resolve(responses[status]).get("content", {})
        for content_type, media in content.items():
            if "json" in content_type:
                return media.get("schema", {})
        return None
    return None


def _merge_parameters(
    path_params: list[dict[str, Any]], op_params: list[dict[str, Any]]
) -> tuple[dict[str, Any], ...]:
    # Operation-level parameters override path-level ones with the same name/location
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for param in [*path_params, *op_params]:
        merged[(param.get("name", ""), param.get("in", "query"))] = param
    return tuple(merged.values())


def parse_operations(
    spec: Mapping[str, Any],
    *,
    operations: list[str] | None = None,
    tags: list[str] | None = None,
) -> list[OpenAPIOperation]:
    """
    Parse every operation under `paths`.

    Args:
        spec: OpenAPI 3.x document
        operations: Keep only these operation ids
        tags: Keep only operations carrying one of these tags

    Returns:
        Operations in document order
    """
    resolver = _RefResolver(spec)
    parsed: list[OpenAPIOperation] = []

    for path, path_item in spec.get("paths", {}).items():
        path_params = resolver.resolve(path_item.get("parameters", []))

        for method in HTTP_METHODS:
            if method not in path_item:
                continue

            op = path_item[method]
            op_id = op.get("operationId") or generate_operation_id(method, path)
            op_tags = tuple(op.get("tags", []))

            if operations and op_id not in operations:
                continue
            if tags and not any(t in op_tags for t in tags):
                continue

            body_schema, body_required, body_type = _request_body(resolver, op)

            parsed.append(
                OpenAPIOperation(
                    operation_id=op_id,
                    method=method,
                    path=path,
                    summary=op.get("summary", ""),
                    description=op.get("description", ""),
                    parameters=_merge_parameters(
                        path_params, resolver.resolve(op.get("parameters", []))
                    ),
                    request_body_schema=body_schema,
                    request_body_required=body_required,
                    request_body_content_type=body_type,
                    response_schema=_response_schema(resolver, op),
                    tags=op_tags,
                )
            )

    logger.info(f"[openapi] Parsed {len(parsed)} operations from spec")
    return parsed


def server_url(spec: Mapping[str, Any]) -> str:
    """First `servers[].url` of the document, or ''."""
    servers = spec.get("servers") or []
    if servers:
        return servers[0].get("url", "")
    return ""


# =============================================================================
# Loading
# =============================================================================


def parse_spec_text(text: str) -> dict[str, Any]:
    """Parse a JSON or YAML document."""
    try:
        spec = json.loads(text)
    except ValueError:
        spec = yaml.safe_load(text)

    if not isinstance(spec, dict):
        raise ValueError("OpenAPI document must be a mapping")
    return spec


def load_spec(source: str | Path | Mapping[str, Any]) -> dict[str, Any]:
    """
    Load an OpenAPI document.

    Args:
        source: A dict, a path to a .json/.yaml file, or the document text

    Returns:
        The document as a dict
    """
    if isinstance(source, Mapping):
        return dict(source)

    if isinstance(source, Path) or (
        "\n" not in source and Path(source).suffix in (".json", ".yaml", ".yml")
    ):
        return parse_spec_text(Path(source).read_text(encoding="utf-8"))

    return parse_spec_text(source)


async def fetch_spec(url: str, *, http_client: httpx.AsyncClient | None = None) -> dict[str, Any]:
    """
    Download and parse an OpenAPI document.

    Raises:
        httpx.HTTPError: If the fetch fails
    """
    if http_client is not None:
        response = await http_client.get(url)
        response.raise_for_status()
        return parse_spec_text(response.text)

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.get(url)
        response.raise_for_status()
        return parse_spec_text(response.text)
