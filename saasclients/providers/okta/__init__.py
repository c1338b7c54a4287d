"""
Okta provider.

Usage:
    from saasclients.providers.okta import OktaClient, OktaConfig

    client = OktaClient(OktaConfig(domain="acme.okta.com", api_token="00a..."))
    apps = await client.applications.list_all()
"""

from saasclients.providers.okta.client import (
    Applications,
    Groups,
    OktaClient,
    OktaConfig,
    Users,
)
from saasclients.providers.okta.schemas import Application, Group, User, UserCreate, UserProfile

__all__ = [
    "Application",
    "Applications",
    "Group",
    "Groups",
    "OktaClient",
    "OktaConfig",
    "User",
    "UserCreate",
    "UserProfile",
    "Users",
]
