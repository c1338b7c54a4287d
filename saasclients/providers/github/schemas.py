"""
Pydantic schemas for the GitHub REST API (v3).

Only the fields this package reads are declared; everything else in the
payload is ignored.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class IssueState(str, Enum):
    """Filter for issue and pull request lists."""

    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RepoType(str, Enum):
    """Repository filter for organization listings."""

    ALL = "all"
    PUBLIC = "public"
    PRIVATE = "private"
    FORKS = "forks"
    SOURCES = "sources"
    MEMBER = "member"
    INTERNAL = "internal"


class RepoSort(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    PUSHED = "pushed"
    FULL_NAME = "full_name"


class PullSort(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    POPULARITY = "popularity"
    LONG_RUNNING = "long-running"


class IssueSort(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    COMMENTS = "comments"


# =============================================================================
# Request Schemas
# =============================================================================


class PullRequestCreate(BaseModel):
    """Body for POST /repos/{owner}/{repo}/pulls."""

    title: str = Field(..., min_length=1)
    head: str = Field(..., description="Branch containing the changes (owner:branch across forks)")
    base: str = Field(..., description="Branch to merge into")
    body: str | None = None
    draft: bool | None = None
    maintainer_can_modify: bool | None = None

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to API request format, excluding None values."""
        return self.model_dump(exclude_none=True)


class IssueCreate(BaseModel):
    """Body for POST /repos/{owner}/{repo}/issues."""

    title: str = Field(..., min_length=1)
    body: str | None = None
    assignees: list[str] | None = None
    milestone: int | None = None
    labels: list[str] | None = None

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class IssueUpdate(BaseModel):
    """Body for PATCH /repos/{owner}/{repo}/issues/{issue_number}."""

    model_config = ConfigDict(use_enum_values=True)

    title: str | None = None
    body: str | None = None
    state: IssueState | None = None
    state_reason: str | None = None
    assignees: list[str] | None = None
    milestone: int | None = None
    labels: list[str] | None = None

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to API request format, excluding None values."""
        return self.model_dump(exclude_none=True)


# =============================================================================
# Response Schemas
# =============================================================================


class SimpleUser(BaseModel):
    """GitHub account reference."""

    model_config = ConfigDict(extra="ignore")

    login: str
    id: int
    type: str | None = None
    html_url: str | None = None
    avatar_url: str | None = None
    site_admin: bool = False


class Label(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    color: str | None = None
    description: str | None = None


class Repository(BaseModel):
    """Repository representation."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    full_name: str
    owner: SimpleUser
    private: bool = False
    html_url: str | None = None
    description: str | None = None
    fork: bool = False
    default_branch: str | None = None
    language: str | None = None
    archived: bool = False
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None


class BranchRef(BaseModel):
    """head/base of a pull request."""

    model_config = ConfigDict(extra="ignore")

    label: str | None = None
    ref: str
    sha: str
    user: SimpleUser | None = None


class PullRequest(BaseModel):
    """Pull request representation."""

    model_config = ConfigDict(extra="ignore")

    id: int
    number: int
    state: str
    title: str
    body: str | None = None
    html_url: str | None = None
    user: SimpleUser | None = None
    labels: list[Label] = Field(default_factory=list)
    draft: bool = False
    head: BranchRef | None = None
    base: BranchRef | None = None
    merged_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None

    @property
    def is_merged(self) -> bool:
        return self.merged_at is not None


class Issue(BaseModel):
    """Issue representation. Pull requests show up here with `pull_request` set."""

    model_config = ConfigDict(extra="ignore")

    id: int
    number: int
    state: str
    title: str
    body: str | None = None
    html_url: str | None = None
    user: SimpleUser | None = None
    labels: list[Label] = Field(default_factory=list)
    assignees: list[SimpleUser] = Field(default_factory=list)
    comments: int = 0
    pull_request: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None


# =============================================================================
# GitHub Apps
# =============================================================================


class App(BaseModel):
    """The GitHub App authenticated by a JWT."""

    model_config = ConfigDict(extra="ignore")

    id: int
    slug: str | None = None
    name: str
    owner: SimpleUser | None = None
    html_url: str | None = None
    permissions: dict[str, str] = Field(default_factory=dict)
    events: list[str] = Field(default_factory=list)


class Installation(BaseModel):
    """An installation of a GitHub App on a user or organization account."""

    model_config = ConfigDict(extra="ignore")

    id: int
    app_id: int | None = None
    account: SimpleUser | None = None
    target_type: str | None = None
    repository_selection: str | None = None
    permissions: dict[str, str] = Field(default_factory=dict)
    suspended_at: datetime | None = None


class InstallationAccessTokenCreate(BaseModel):
    """Body for POST /app/installations/{id}/access_tokens. Empty means every permission granted."""

    repositories: list[str] | None = None
    repository_ids: list[int] | None = None
    permissions: dict[str, str] | None = None

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class InstallationToken(BaseModel):
    """Installation access token. Valid for one hour."""

    model_config = ConfigDict(extra="ignore")

    token: str
    expires_at: datetime | None = None
    permissions: dict[str, str] = Field(default_factory=dict)
    repository_selection: str | None = None
