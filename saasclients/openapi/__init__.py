"""
Spec-driven clients.

Directory Structure:
    openapi/
    ├── spec.py       # Document loading, $ref resolution, OpenAPIOperation
    ├── naming.py     # snake_case and operation method names
    └── client.py     # SpecClient and SpecResource

Usage:
    from saasclients.openapi import SpecClient, load_spec

    client = SpecClient(load_spec("openapi.yaml"))
    await client.users.get(user_id="me")
"""

from saasclients.openapi.client import SpecClient, SpecResource
from saasclients.openapi.naming import operation_name, safe_identifier, snake_case
from saasclients.openapi.spec import OpenAPIOperation, fetch_spec, load_spec, parse_operations

__all__ = [
    "OpenAPIOperation",
    "SpecClient",
    "SpecResource",
    "fetch_spec",
    "load_spec",
    "operation_name",
    "parse_operations",
    "safe_identifier",
    "snake_case",
]
