"""
GitHub provider.

Usage:
    from saasclients.providers.github import GitHubClient, GitHubConfig

    client = GitHubClient(GitHubConfig(token="ghp_..."))
    repo = await client.repos.get("octocat", "hello-world")

    # As a GitHub App installation
    client = GitHubClient(GitHubConfig(app_id="12345", private_key=pem, installation_id=67890))

API Reference:
    https://docs.github.com/en/rest
"""

from saasclients.providers.github.auth import GitHubAppJWT, GitHubInstallationToken
from saasclients.providers.github.client import (
    Apps,
    GitHubClient,
    GitHubConfig,
    Issues,
    MediaType,
    Pulls,
    Repos,
)
from saasclients.providers.github.schemas import (
    App,
    Installation,
    InstallationAccessTokenCreate,
    InstallationToken,
    Issue,
    IssueCreate,
    IssueState,
    IssueUpdate,
    PullRequest,
    PullRequestCreate,
    Repository,
    SimpleUser,
)

__all__ = [
    "App",
    "Apps",
    "GitHubAppJWT",
    "GitHubClient",
    "GitHubConfig",
    "GitHubInstallationToken",
    "Installation",
    "InstallationAccessTokenCreate",
    "InstallationToken",
    "Issue",
    "IssueCreate",
    "IssueState",
    "IssueUpdate",
    "Issues",
    "MediaType",
    "PullRequest",
    "PullRequestCreate",
    "Pulls",
    "Repos",
    "Repository",
    "SimpleUser",
]
