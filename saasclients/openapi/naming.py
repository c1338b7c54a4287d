"""Python names for OpenAPI operation ids, tags and parameters."""

from __future__ import annotations

import keyword
import re

_NON_WORD = re.compile(r"[^0-9A-Za-z]+")
_CAMEL_WORD = re.compile(r"(.)([A-Z][a-z]+)")
_CAMEL_TAIL = re.compile(r"([a-z0-9])([A-Z])")
_UNDERSCORES = re.compile(r"_+")


def snake_case(name: str) -> str:
    """
    Convert an identifier from a spec into snake_case.

    Examples:
        GetCustomers        -> get_customers
        repos/list-for-org  -> repos_list_for_org
        listHTTPRoutes      -> list_http_routes
        users.info          -> users_info
    """
    name = _NON_WORD.sub("_", name)
    name = _CAMEL_WORD.sub(r"\1_\2", name)
    name = _CAMEL_TAIL.sub(r"\1_\2", name)
    return _UNDERSCORES.sub("_", name).strip("_").lower()


def safe_identifier(name: str) -> str:
    """Make name usable as a Python attribute (keywords get a trailing underscore)."""
    if not name:
        return "_"
    if name[0].isdigit():
        name = f"n{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name


def operation_name(operation_id: str, tag: str | None = None) -> str:
    """
    Method name for an operation within its tag's resource group.

    The tag prefix is dropped so `repos/get` under tag `repos` becomes `get`.
    """
    name = snake_case(operation_id)
    if tag:
        prefix = f"{snake_case(tag)}_"
        if name.startswith(prefix) and len(name) > len(prefix):
            name = name[len(prefix):]
    return safe_identifier(name)


def generate_operation_id(method: str, path: str) -> str:
    """
    Generate operation ID from method and path.

    Examples:
        GET /projects -> get_projects
        POST /projects/{id}/tasks -> post_projects_by_id_tasks
    """
    clean_path = path.strip("/")
    clean_path = re.sub(r"\{[^}]+\}", "by_id", clean_path)
    clean_path = clean_path.replace("/", "_").replace("-", "_")

    return f"{method}_{clean_path}"
