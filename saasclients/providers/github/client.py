"""
GitHub API Client.

Usage:
    async with GitHubClient(GitHubConfig(token="ghp_...")) as github:
        repo = await github.repos.get("octocat", "hello-world")

        # Every open pull request, following Link headers
        pulls = await github.pulls.list_all("octocat", "hello-world", state="open")

        issue = await github.issues.create(
            "octocat", "hello-world", IssueCreate(title="Found a bug")
        )

Conditional requests:
    Pass an InMemoryHttpCache and repeated GETs are sent with If-None-Match.
    304 answers do not count against the rate limit.

API Reference:
    https://docs.github.com/en/rest
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import BearerToken, ClientCredentialsQuery, Credentials
from saasclients.core.base import ApiClient, ClientConfig, Resource, encode_path
from saasclients.core.pagination import LinkHeaderPaginator
from saasclients.providers.github.auth import GitHubAppJWT, GitHubInstallationToken
from saasclients.providers.github.schemas import (
    App,
    Direction,
    Installation,
    InstallationAccessTokenCreate,
    InstallationToken,
    Issue,
    IssueCreate,
    IssueSort,
    IssueState,
    IssueUpdate,
    PullRequest,
    PullRequestCreate,
    PullSort,
    Repository,
    RepoSort,
    RepoType,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://api.github.com"


class MediaType(str, Enum):
    """Accept header values understood by the GitHub API."""

    JSON = "application/vnd.github.v3+json"
    RAW = "application/vnd.github.v3.raw"
    HTML = "application/vnd.github.v3.html"
    DIFF = "application/vnd.github.v3.diff"
    PATCH = "application/vnd.github.v3.patch"


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class GitHubConfig(ClientConfig):
    """Configuration for GitHub client."""

    # Personal access token or installation token
    token: str = ""

    # OAuth app credentials, sent as query params instead of a token
    client_id: str = ""
    client_secret: str = ""

    # GitHub App: JWT signed with the private key, exchanged for installation tokens
    app_id: str = ""
    private_key: str = ""
    installation_id: int | None = None

    base_url: str = DEFAULT_HOST
    media_type: str = MediaType.JSON.value

    def __post_init__(self):
        """Validate configuration."""
        if not self.user_agent:
            raise ValueError("GitHub requires a User-Agent")
        if bool(self.client_id) != bool(self.client_secret):
            raise ValueError("GitHub client_id and client_secret must be set together")
        if bool(self.app_id) != bool(self.private_key):
            raise ValueError("GitHub app_id and private_key must be set together")
        if self.installation_id is not None and not self.app_id:
            raise ValueError("GitHub installation_id requires app_id and private_key")


# =============================================================================
# Resources
# =============================================================================


class Repos(Resource):
    """Repositories."""

    async def get(self, owner: str, repo: str) -> Repository:
        """
        Get a repository.

        Args:
            owner: Account that owns the repository
            repo: Repository name

        Returns:
            Repository details
        """
        data = await self.client.get(f"/repos/{encode_path(owner)}/{encode_path(repo)}")
        return self.client.parse_model(Repository, data)

    async def list_for_org(
        self,
        org: str,
        *,
        type: RepoType | str | None = None,
        sort: RepoSort | str | None = None,
        direction: Direction | str | None = None,
        per_page: int | None = None,
        page: int | None = None,
    ) -> list[Repository]:
        """
        List one page of an organization's repositories.

        Args:
            org: Organization login
            type: all, public, private, forks, sources, member, internal
            sort: created, updated, pushed, full_name
            direction: asc or desc
            per_page: Results per page (max 100)
            page: Page number
        """
        data = await self.client.get(
            f"/orgs/{encode_path(org)}/repos",
            params={
                "type": type,
                "sort": sort,
                "direction": direction,
                "per_page": per_page,
                "page": page,
            },
        )
        return self.client.parse_models(Repository, data)

    async def list_all_for_org(
        self,
        org: str,
        *,
        type: RepoType | str | None = None,
        sort: RepoSort | str | None = None,
        direction: Direction | str | None = None,
    ) -> list[Repository]:
        """List every repository of an organization, following Link headers."""
        items = await self.client.unfold(
            f"/orgs/{encode_path(org)}/repos",
            LinkHeaderPaginator(),
            params={"type": type, "sort": sort, "direction": direction, "per_page": 100},
        )
        return self.client.parse_models(Repository, items)


class Pulls(Resource):
    """Pull requests."""

    def _path(self, owner: str, repo: str) -> str:
        return f"/repos/{encode_path(owner)}/{encode_path(repo)}/pulls"

    async def list(
        self,
        owner: str,
        repo: str,
        *,
        state: IssueState | str | None = None,
        head: str | None = None,
        base: str | None = None,
        sort: PullSort | str | None = None,
        direction: Direction | str | None = None,
        per_page: int | None = None,
        page: int | None = None,
    ) -> list[PullRequest]:
        """
        List one page of pull requests.

        Args:
            owner: Repository owner
            repo: Repository name
            state: open, closed or all
            head: Filter by head user/org and branch (user:ref-name)
            base: Filter by base branch name
            sort: created, updated, popularity, long-running
            direction: asc or desc
            per_page: Results per page (max 100)
            page: Page number
        """
        data = await self.client.get(
            self._path(owner, repo),
            params={
                "state": state,
                "head": head,
                "base": base,
                "sort": sort,
                "direction": direction,
                "per_page": per_page,
                "page": page,
            },
        )
        return self.client.parse_models(PullRequest, data)

    async def list_all(
        self,
        owner: str,
        repo: str,
        *,
        state: IssueState | str | None = None,
        head: str | None = None,
        base: str | None = None,
        sort: PullSort | str | None = None,
        direction: Direction | str | None = None,
        max_items: int | None = None,
    ) -> list[PullRequest]:
        """List every pull request matching the filters."""
        items = await self.client.unfold(
            self._path(owner, repo),
            LinkHeaderPaginator(),
            params={
                "state": state,
                "head": head,
                "base": base,
                "sort": sort,
                "direction": direction,
                "per_page": 100,
            },
            max_items=max_items,
        )
        return self.client.parse_models(PullRequest, items)

    async def get(self, owner: str, repo: str, pull_number: int) -> PullRequest:
        data = await self.client.get(f"{self._path(owner, repo)}/{pull_number}")
        return self.client.parse_model(PullRequest, data)

    async def create(self, owner: str, repo: str, pull: PullRequestCreate) -> PullRequest:
        """
        Open a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pull: Title, head and base branches, optional body

        Returns:
            Created pull request
        """
        logger.info(f"[github] Creating pull request {pull.head} -> {pull.base} in {owner}/{repo}")

        data = await self.client.post(self._path(owner, repo), json=pull.to_api_dict())

        created = self.client.parse_model(PullRequest, data)
        logger.info(f"[github] Created pull request #{created.number}")
        return created


class Issues(Resource):
    """Issues."""

    def _path(self, owner: str, repo: str) -> str:
        return f"/repos/{encode_path(owner)}/{encode_path(repo)}/issues"

    async def create(self, owner: str, repo: str, issue: IssueCreate) -> Issue:
        logger.info(f"[github] Creating issue in {owner}/{repo}: {issue.title}")

        data = await self.client.post(self._path(owner, repo), json=issue.to_api_dict())

        created = self.client.parse_model(Issue, data)
        logger.info(f"[github] Created issue #{created.number}")
        return created

    async def update(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        update: IssueUpdate,
    ) -> Issue:
        """
        Edit an issue. Only fields set on `update` change.

        Returns:
            Updated issue
        """
        logger.info(f"[github] Updating issue #{issue_number} in {owner}/{repo}")

        data = await self.client.patch(
            f"{self._path(owner, repo)}/{issue_number}",
            json=update.to_api_dict(),
        )
        return self.client.parse_model(Issue, data)

    async def list_all_for_repo(
        self,
        owner: str,
        repo: str,
        *,
        milestone: str | None = None,
        state: IssueState | str | None = None,
        assignee: str | None = None,
        creator: str | None = None,
        mentioned: str | None = None,
        labels: list[str] | None = None,
        sort: IssueSort | str | None = None,
        direction: Direction | str | None = None,
        since: str | None = None,
        max_items: int | None = None,
    ) -> list[Issue]:
        """
        List every issue in a repository (pull requests included, as GitHub does).

        Args:
            labels: Issues must carry all of these labels
            since: Only issues updated at or after this ISO 8601 timestamp
        """
        items = await self.client.unfold(
            self._path(owner, repo),
            LinkHeaderPaginator(),
            params={
                "milestone": milestone,
                "state": state,
                "assignee": assignee,
                "creator": creator,
                "mentioned": mentioned,
                "labels": ",".join(labels) if labels else None,
                "sort": sort,
                "direction": direction,
                "since": since,
                "per_page": 100,
            },
            max_items=max_items,
        )
        return self.client.parse_models(Issue, items)


class Apps(Resource):
    """
    GitHub App endpoints.

    These only accept the App's JWT, so every call carries it explicitly,
    whatever credentials the client was built with.
    """

    async def get_authenticated(self) -> App:
        data = await self.client.get("/app", headers=self.client.jwt_headers())
        return self.client.parse_model(App, data)

    async def list_installations(self, *, max_items: int | None = None) -> list[Installation]:
        """List every installation of the App, following Link headers."""
        items = []
        next_path: str | None = "/app/installations"
        params: dict[str, Any] | None = {"per_page": 100}
        while next_path is not None:
            next_path, page = await self.client.request_with_links(
                "GET", next_path, params=params, headers=self.client.jwt_headers()
            )
            params = None
            items.extend(page or [])
            if max_items is not None and len(items) >= max_items:
                items = items[:max_items]
                break
        return self.client.parse_models(Installation, items)

    async def create_installation_access_token(
        self,
        installation_id: int,
        request: InstallationAccessTokenCreate | None = None,
    ) -> InstallationToken:
        """
        Create an installation access token, optionally narrowed to some
        repositories or permissions.
        """
        logger.info(f"[github] Creating access token for installation {installation_id}")

        body = request.to_api_dict() if request else None
        data = await self.client.post(
            f"/app/installations/{installation_id}/access_tokens",
            json=body,
            headers=self.client.jwt_headers(),
        )
        return self.client.parse_model(InstallationToken, data)


# =============================================================================
# Client
# =============================================================================


class GitHubClient(ApiClient):
    """
    Async client for the GitHub REST API.

    The client handles:
    - `Authorization: token <t>`, or OAuth app id/secret as query params
    - GitHub App JWTs and installation tokens minted from them
    - Link header pagination
    - Rate limit errors (403/429 with x-ratelimit-remaining: 0)
    - Conditional requests when an http_cache is configured
    """

    health_check_path = "/rate_limit"

    def __init__(self, config: GitHubConfig, **kwargs: Any):
        """
        Initialize GitHub client.

        Args:
            config: GitHub configuration
            **kwargs: credentials, http_client, http_cache
        """
        self._config: GitHubConfig = config
        super().__init__(config, **kwargs)

        self.repos = Repos(self)
        self.pulls = Pulls(self)
        self.issues = Issues(self)
        self.apps = Apps(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> GitHubClient:
        """
        Build a client from GITHUB_TOKEN (or GITHUB_CLIENT_ID/SECRET, or
        GITHUB_APP_ID/GITHUB_PRIVATE_KEY/GITHUB_INSTALLATION_ID) and GITHUB_HOST.

        Raises:
            ValueError: If no credentials are set
        """
        settings = load_provider_settings("github")
        installation_id = settings.extra.get("installation_id")
        config = GitHubConfig(
            token=settings.secret("token"),
            client_id=settings.client_id,
            client_secret=settings.secret("client_secret"),
            app_id=settings.extra.get("app_id", ""),
            # PEM keys in a single-line variable carry literal "\n" sequences
            private_key=settings.extra.get("private_key", "").replace("\\n", "\n"),
            installation_id=int(installation_id) if installation_id else None,
            base_url=settings.host or DEFAULT_HOST,
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        """Provider name."""
        return "github"

    def _build_credentials(self) -> Credentials:
        if self._config.token:
            return BearerToken(self._config.token, prefix="token")
        if self._config.client_id:
            return ClientCredentialsQuery(self._config.client_id, self._config.client_secret)
        if self._config.app_id:
            app = GitHubAppJWT(self._config.app_id, self._config.private_key)
            if self._config.installation_id is None:
                return app
            return GitHubInstallationToken(
                app,
                self._config.installation_id,
                api_url=self._config.host_override or self._config.base_url,
                user_agent=self._config.user_agent,
            )
        raise ValueError(
            "GITHUB_TOKEN (or GITHUB_CLIENT_ID/GITHUB_CLIENT_SECRET, or GITHUB_APP_ID/GITHUB_PRIVATE_KEY) is not set"
        )

    @property
    def app_jwt(self) -> GitHubAppJWT | None:
        """The App JWT behind the current credentials, if any."""
        if isinstance(self.credentials, GitHubAppJWT):
            return self.credentials
        if isinstance(self.credentials, GitHubInstallationToken):
            return self.credentials.app
        return None

    def jwt_headers(self) -> dict[str, str]:
        """
        Authorization header for endpoints that only accept the App JWT.

        Raises:
            ValueError: If the client was not built with GitHub App credentials
        """
        app = self.app_jwt
        if app is None:
            raise ValueError("This endpoint requires GitHub App credentials (app_id and private_key)")
        return {"Authorization": f"Bearer {app.token()}"}

    def _get_default_headers(self) -> dict[str, str]:
        return {**super()._get_default_headers(), "Accept": self._config.media_type}
