"""
SpecClient: call any operation of an OpenAPI document.

Each provider package hand-writes a representative set of endpoints. For
everything else, point a SpecClient at the vendor's OpenAPI document and
call operations by resource group and method name. Auth, retry, pagination
and error mapping are the same as for the hand-written clients.

Usage:
    spec = load_spec("api.github.com.yaml")
    async with SpecClient(
        spec,
        ClientConfig(base_url="https://api.github.com"),
        credentials=BearerToken("ghp_...", prefix="token"),
    ) as github:
        repo = await github.repos.get(owner="octocat", repo="hello-world")
        same = await github.call("repos/get", owner="octocat", repo="hello-world")

        github.list_operations(tag="repos")
        github.operations_by_tag()

Architecture:
    SpecClient (parses spec, owns the HTTP plumbing)
        └── SpecResource (one per tag, e.g. `repos`)
                └── OpenAPIOperation (parsed operation data)
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Mapping
from typing import Any

import httpx

from saasclients.core.auth import Credentials, NoAuth
from saasclients.core.base import ApiClient, ClientConfig, Resource, encode_path
from saasclients.core.http_cache import HttpCache

from .naming import operation_name, safe_identifier, snake_case
from .spec import FORM_CONTENT_TYPE, OpenAPIOperation, fetch_spec, parse_operations, server_url

logger = logging.getLogger(__name__)

DEFAULT_RESOURCE = "default"

_PATH_PARAM = re.compile(r"\{([^}]+)\}")


class SpecResource(Resource):
    """
    Operations sharing a tag, exposed as async methods.

    Example:
        await client.repos.get(owner="octocat", repo="hello-world")
    """

    def __init__(self, client: SpecClient, tag: str):
        super().__init__(client)
        self.tag = tag
        self._operations: dict[str, OpenAPIOperation] = {}

    def _add(self, operation: OpenAPIOperation) -> None:
        name = operation_name(operation.operation_id, self.tag)
        if name in self._operations:
            # Two ids collapsing to one name: fall back to the full id
            name = safe_identifier(snake_case(operation.operation_id))
        self._operations[name] = operation

    @property
    def operations(self) -> dict[str, OpenAPIOperation]:
        return dict(self._operations)

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        operation = self._operations.get(name)
        if operation is None:
            raise AttributeError(f"{self.tag!r} has no operation {name!r}")

        client: SpecClient = self.client  # type: ignore[assignment]

        async def call(**arguments: Any) -> Any:
            return await client.call_operation(operation, arguments)

        call.__name__ = name
        call.__doc__ = operation.full_description
        return call

    def __dir__(self) -> list[str]:
        return sorted({*super().__dir__(), *self._operations})

    def __repr__(self) -> str:
        return f"SpecResource({self.tag!r}, operations={len(self._operations)})"


class SpecClient(ApiClient):
    """Client generated at runtime from an OpenAPI 3.x document."""

    def __init__(
        self,
        spec: Mapping[str, Any],
        config: ClientConfig | None = None,
        *,
        name: str | None = None,
        operations: list[str] | None = None,
        tags: list[str] | None = None,
        credentials: Credentials | None = None,
        http_client: httpx.AsyncClient | None = None,
        http_cache: HttpCache | None = None,
    ):
        """
        Initialize from a parsed document.

        Args:
            spec: OpenAPI 3.x document
            config: Connection settings; base_url defaults to the spec's first server
            name: Name used in logs and errors (defaults to the spec title)
            operations: Keep only these operation ids
            tags: Keep only operations with these tags
            credentials: How to authenticate (anonymous by default)
            http_client: Shared httpx client
            http_cache: ETag cache for GET requests

        Raises:
            ValueError: If no base URL is given and the spec has no servers
        """
        config = config or ClientConfig()
        if not config.base_url:
            base_url = server_url(spec)
            if not base_url:
                raise ValueError("base_url required (not found in spec)")
            config = dataclasses.replace(config, base_url=base_url)

        self.spec_info: dict[str, Any] = dict(spec.get("info", {}))
        self._name = name or snake_case(self.spec_info.get("title", "")) or "openapi"

        super().__init__(
            config,
            credentials=credentials,
            http_client=http_client,
            http_cache=http_cache,
        )

        self._operations: dict[str, OpenAPIOperation] = {}
        self._resources: dict[str, SpecResource] = {}
        for operation in parse_operations(spec, operations=operations, tags=tags):
            self._operations[operation.operation_id] = operation
            resource_name = safe_identifier(snake_case(operation.tag or DEFAULT_RESOURCE))
            resource = self._resources.get(resource_name)
            if resource is None:
                resource = SpecResource(self, operation.tag or DEFAULT_RESOURCE)
                self._resources[resource_name] = resource
            resource._add(operation)

    @classmethod
    async def from_spec_url(
        cls,
        spec_url: str,
        config: ClientConfig | None = None,
        **kwargs: Any,
    ) -> SpecClient:
        """
        Create a client from an OpenAPI document URL (JSON or YAML).

        Raises:
            httpx.HTTPError: If the spec fetch fails
        """
        spec = await fetch_spec(spec_url, http_client=kwargs.get("http_client"))
        return cls(spec, config, **kwargs)

    @property
    def name(self) -> str:
        return self._name

    def _build_credentials(self) -> Credentials:
        return NoAuth()

    @property
    def title(self) -> str:
        return self.spec_info.get("title", "OpenAPI")

    @property
    def version(self) -> str:
        return self.spec_info.get("version", "unknown")

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    def __getattr__(self, name: str) -> SpecResource:
        if name.startswith("_"):
            raise AttributeError(name)
        resource = self._resources.get(name)
        if resource is None:
            raise AttributeError(f"{self._name!r} has no resource group {name!r}")
        return resource

    def resource(self, tag: str) -> SpecResource:
        """Resource group for a tag, by its name in the spec."""
        return getattr(self, safe_identifier(snake_case(tag)))

    @property
    def resources(self) -> dict[str, SpecResource]:
        return dict(self._resources)

    def get_operation(self, operation_id: str) -> OpenAPIOperation:
        """
        Raises:
            KeyError: If operation not found
        """
        if operation_id not in self._operations:
            available = list(self._operations.keys())[:5]
            raise KeyError(f"Unknown operation: '{operation_id}'. Available: {available}...")
        return self._operations[operation_id]

    def list_operations(self, tag: str | None = None) -> list[str]:
        """
        List available operation IDs.

        Args:
            tag: Only operations carrying this tag
        """
        if tag is None:
            return list(self._operations)
        return [op_id for op_id, op in self._operations.items() if tag in op.tags]

    def operations_by_tag(self) -> dict[str, list[str]]:
        """Group operation IDs by tag."""
        by_tag: dict[str, list[str]] = {}
        for op_id, op in self._operations.items():
            for tag in op.tags or (DEFAULT_RESOURCE,):
                by_tag.setdefault(tag, []).append(op_id)
        return by_tag

    # -------------------------------------------------------------------------
    # Calling
    # -------------------------------------------------------------------------

    async def call(self, operation_id: str, **arguments: Any) -> Any:
        """Call an operation by its operationId."""
        return await self.call_operation(self.get_operation(operation_id), arguments)

    async def call_operation(self, operation: OpenAPIOperation, arguments: Mapping[str, Any]) -> Any:
        path, params, headers, body = self.build_request(operation, arguments)

        if body is not None and operation.request_body_content_type == FORM_CONTENT_TYPE:
            return await self.request(
                operation.method.upper(), path, params=params, headers=headers, data=body
            )

        return await self.request(
            operation.method.upper(), path, params=params, headers=headers, json=body
        )

    def build_request(
        self,
        operation: OpenAPIOperation,
        arguments: Mapping[str, Any],
    ) -> tuple[str, dict[str, Any], dict[str, str], Any]:
        """
        Spread arguments into path, query, headers and body.

        Arguments are matched to parameters by their spec name or its
        snake_case form. A `body` argument is sent as the whole request body;
        otherwise leftover arguments become the body's fields.

        Returns:
            Tuple of (path, params, headers, body)

        Raises:
            ValueError: If a required path parameter is missing
            TypeError: If an argument matches nothing and the operation has no body
        """
        by_name: dict[str, dict[str, Any]] = {}
        for param in operation.parameters:
            by_name[param["name"]] = param
            by_name.setdefault(snake_case(param["name"]), param)

        path_values: dict[str, Any] = {}
        params: dict[str, Any] = {}
        headers: dict[str, str] = {}
        body_fields: dict[str, Any] = {}
        body: Any = None

        for key, value in arguments.items():
            if value is None:
                continue

            param = by_name.get(key)
            if param is None:
                if key == "body" and operation.has_body:
                    body = value
                elif operation.has_body:
                    body_fields[key] = value
                else:
                    raise TypeError(
                        f"{operation.operation_id}() got an unexpected argument {key!r}"
                    )
                continue

            location = param.get("in", "query")
            if location == "path":
                path_values[param["name"]] = value
            elif location == "header":
                headers[param["name"]] = str(value)
            elif location == "query":
                params[param["name"]] = value

        missing = [
            name for name in _PATH_PARAM.findall(operation.path) if name not in path_values
        ]
        if missing:
            raise ValueError(
                f"{operation.operation_id}() missing path parameters: {', '.join(missing)}"
            )

        path = _PATH_PARAM.sub(lambda m: encode_path(path_values[m.group(1)]), operation.path)

        if body is None and body_fields:
            body = body_fields

        return path, params, headers, body

    def __repr__(self) -> str:
        return (
            f"SpecClient(title={self.title!r}, "
            f"version={self.version!r}, "
            f"operations={len(self._operations)})"
        )
