"""
Tests for GitHub App authentication.

Tests cover:
- JWT claims and signing
- Installation tokens minted on first use, reused, and renewed before expiry or on 401
- JWT-only /app endpoints
- Configuration and environment loading
"""

import json
import time
from datetime import UTC, datetime, timedelta

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from saasclients.core import TokenRefreshError
from saasclients.providers.github import (
    GitHubAppJWT,
    GitHubClient,
    GitHubConfig,
    GitHubInstallationToken,
    InstallationAccessTokenCreate,
)

APP_ID = "12345"
INSTALLATION_ID = 67890
TOKEN_PATH = f"/app/installations/{INSTALLATION_ID}/access_tokens"

REPO = {
    "id": 1296269,
    "name": "private-repo",
    "full_name": "octo-org/private-repo",
    "owner": {"login": "octo-org", "id": 2},
}


@pytest.fixture(scope="module")
def rsa_keys():
    """A throwaway RSA key pair: (private PEM text, public PEM bytes)."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


def expires_in(seconds: int) -> str:
    return (datetime.now(UTC) + timedelta(seconds=seconds)).isoformat()


def make_app_client(http, private_pem, **kwargs) -> GitHubClient:
    config = GitHubConfig(
        app_id=APP_ID,
        private_key=private_pem,
        installation_id=INSTALLATION_ID,
        max_retries=0,
        **kwargs,
    )
    return GitHubClient(config, http_client=http)


# =============================================================================
# JWT Tests
# =============================================================================


class TestGitHubAppJWT:
    """Tests for the App JWT."""

    def test_claims(self, rsa_keys):
        private_pem, public_pem = rsa_keys
        before = int(time.time())

        token = GitHubAppJWT(12345, private_pem).token()

        claims = jwt.decode(token, public_pem, algorithms=["RS256"])
        assert claims["iss"] == APP_ID
        assert before <= claims["iat"] <= int(time.time())
        assert claims["exp"] - claims["iat"] == 9 * 60
        assert jwt.get_unverified_header(token)["alg"] == "RS256"

    def test_token_is_cached(self, rsa_keys):
        app = GitHubAppJWT(APP_ID, rsa_keys[0])

        assert app.is_stale()
        first = app.token()
        assert not app.is_stale()
        assert app.token() == first

    def test_signed_again_after_eight_minutes(self, rsa_keys):
        app = GitHubAppJWT(APP_ID, rsa_keys[0])
        app.token()
        app._signed_at -= 8 * 60 + 1

        assert app.is_stale()
        app.token()
        assert not app.is_stale()

    @pytest.mark.asyncio
    async def test_auth_header(self, rsa_keys):
        app = GitHubAppJWT(APP_ID, rsa_keys[0])
        headers = await app.auth_headers()
        assert headers == {"Authorization": f"Bearer {app.token()}"}

    def test_repr_hides_key(self, rsa_keys):
        text = repr(GitHubAppJWT(APP_ID, rsa_keys[0]))
        assert "PRIVATE KEY" not in text
        assert APP_ID in text


# =============================================================================
# Installation Token Tests
# =============================================================================


class TestInstallationToken:
    """Tests for installation tokens inside the request pipeline."""

    @pytest.mark.asyncio
    async def test_token_created_before_first_request(self, mock_http, rsa_keys):
        private_pem, public_pem = rsa_keys

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == TOKEN_PATH:
                return httpx.Response(201, json={"token": "ghs_1", "expires_at": expires_in(3600)})
            return httpx.Response(200, json=REPO)

        http, calls = mock_http(handler)
        client = make_app_client(http, private_pem)

        repo = await client.repos.get("octo-org", "private-repo")

        assert repo.full_name == "octo-org/private-repo"
        token_request, api_request = calls.requests
        assert token_request.method == "POST"
        assert str(token_request.url) == f"https://api.github.com{TOKEN_PATH}"
        signed = token_request.headers["Authorization"].removeprefix("Bearer ")
        assert jwt.decode(signed, public_pem, algorithms=["RS256"])["iss"] == APP_ID
        assert api_request.headers["Authorization"] == "token ghs_1"

    @pytest.mark.asyncio
    async def test_token_is_reused(self, mock_http, rsa_keys):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == TOKEN_PATH:
                return httpx.Response(201, json={"token": "ghs_1", "expires_at": expires_in(3600)})
            return httpx.Response(200, json=REPO)

        http, calls = mock_http(handler)
        client = make_app_client(http, rsa_keys[0])

        await client.repos.get("octo-org", "private-repo")
        await client.repos.get("octo-org", "private-repo")

        assert [r.url.path for r in calls.requests].count(TOKEN_PATH) == 1

    @pytest.mark.asyncio
    async def test_token_renewed_before_expiry(self, mock_http, rsa_keys):
        tokens = iter(["ghs_1", "ghs_2"])

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == TOKEN_PATH:
                return httpx.Response(201, json={"token": next(tokens), "expires_at": expires_in(3600)})
            return httpx.Response(200, json=REPO)

        http, calls = mock_http(handler)
        client = make_app_client(http, rsa_keys[0])

        await client.repos.get("octo-org", "private-repo")
        client.credentials.expires_at = datetime.now(UTC) + timedelta(seconds=30)
        await client.repos.get("octo-org", "private-repo")

        assert calls.last.headers["Authorization"] == "token ghs_2"
        assert [r.url.path for r in calls.requests].count(TOKEN_PATH) == 2

    @pytest.mark.asyncio
    async def test_401_mints_new_token(self, mock_http, rsa_keys):
        tokens = iter(["ghs_revoked", "ghs_2"])

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == TOKEN_PATH:
                return httpx.Response(201, json={"token": next(tokens), "expires_at": expires_in(3600)})
            if request.headers["Authorization"] == "token ghs_2":
                return httpx.Response(200, json=REPO)
            return httpx.Response(401, json={"message": "Bad credentials"})

        http, calls = mock_http(handler)
        client = make_app_client(http, rsa_keys[0])

        repo = await client.repos.get("octo-org", "private-repo")

        assert repo.name == "private-repo"
        assert [r.url.path for r in calls.requests] == [
            TOKEN_PATH,
            "/repos/octo-org/private-repo",
            TOKEN_PATH,
            "/repos/octo-org/private-repo",
        ]

    @pytest.mark.asyncio
    async def test_token_endpoint_failure(self, mock_http, rsa_keys):
        http, _ = mock_http(
            lambda request: httpx.Response(401, json={"message": "A JSON web token could not be decoded"})
        )
        client = make_app_client(http, rsa_keys[0])

        with pytest.raises(TokenRefreshError, match="could not be decoded"):
            await client.repos.get("octo-org", "private-repo")

    @pytest.mark.asyncio
    async def test_token_endpoint_follows_host(self, mock_http, rsa_keys):
        http, calls = mock_http(
            lambda request: httpx.Response(201, json={"token": "ghs_1", "expires_at": expires_in(3600)})
        )
        client = make_app_client(http, rsa_keys[0], base_url="https://github.example.com/api/v3")

        await client.credentials.ensure_fresh(http)

        assert str(calls.last.url) == f"https://github.example.com/api/v3{TOKEN_PATH}"


# =============================================================================
# App Endpoint Tests
# =============================================================================


class TestAppsEndpoints:
    """Tests for endpoints that only accept the App JWT."""

    @pytest.mark.asyncio
    async def test_list_installations_uses_jwt(self, mock_http, rsa_keys):
        private_pem, public_pem = rsa_keys
        next_url = "https://api.github.com/app/installations?per_page=100&page=2"

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json=[{"id": 2, "account": {"login": "octocat", "id": 1}}])
            return httpx.Response(
                200,
                json=[{"id": INSTALLATION_ID, "account": {"login": "octo-org", "id": 2}}],
                headers={"Link": f'<{next_url}>; rel="next"'},
            )

        http, calls = mock_http(handler)
        client = make_app_client(http, private_pem)

        installations = await client.apps.list_installations()

        assert [i.id for i in installations] == [INSTALLATION_ID, 2]
        # No installation token is minted for JWT-only endpoints
        assert [r.url.path for r in calls.requests] == ["/app/installations", "/app/installations"]
        signed = calls.requests[0].headers["Authorization"].removeprefix("Bearer ")
        assert jwt.decode(signed, public_pem, algorithms=["RS256"])["iss"] == APP_ID

    @pytest.mark.asyncio
    async def test_get_authenticated_app(self, mock_http, rsa_keys):
        app = {"id": 12345, "slug": "octo-bot", "name": "Octo Bot", "events": ["push"]}
        http, calls = mock_http(lambda request: httpx.Response(200, json=app))
        client = GitHubClient(
            GitHubConfig(app_id=APP_ID, private_key=rsa_keys[0], max_retries=0), http_client=http
        )

        found = await client.apps.get_authenticated()

        assert found.slug == "octo-bot"
        assert isinstance(client.credentials, GitHubAppJWT)
        assert calls.last.headers["Authorization"].startswith("Bearer ")

    @pytest.mark.asyncio
    async def test_create_installation_access_token(self, mock_http, rsa_keys):
        http, calls = mock_http(
            lambda request: httpx.Response(
                201,
                json={"token": "ghs_scoped", "expires_at": "2030-01-01T00:00:00Z", "permissions": {"contents": "read"}},
            )
        )
        client = make_app_client(http, rsa_keys[0])

        created = await client.apps.create_installation_access_token(
            INSTALLATION_ID,
            InstallationAccessTokenCreate(repositories=["private-repo"], permissions={"contents": "read"}),
        )

        assert created.token == "ghs_scoped"
        assert created.expires_at == datetime(2030, 1, 1, tzinfo=UTC)
        assert len(calls.requests) == 1
        assert calls.last.url.path == TOKEN_PATH
        assert json.loads(calls.last.content) == {
            "repositories": ["private-repo"],
            "permissions": {"contents": "read"},
        }

    @pytest.mark.asyncio
    async def test_app_endpoints_require_app_credentials(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(200, json={}))
        client = GitHubClient(GitHubConfig(token="ghp_secret", max_retries=0), http_client=http)

        with pytest.raises(ValueError, match="GitHub App credentials"):
            await client.apps.get_authenticated()

        assert calls.requests == []


# =============================================================================
# Configuration Tests
# =============================================================================


class TestGitHubAppConfig:
    """Tests for GitHub App configuration."""

    def test_app_id_requires_private_key(self):
        with pytest.raises(ValueError, match="set together"):
            GitHubConfig(app_id=APP_ID)

    def test_installation_requires_app(self):
        with pytest.raises(ValueError, match="installation_id requires"):
            GitHubConfig(token="ghp_secret", installation_id=INSTALLATION_ID)

    def test_credentials_selected_from_config(self, rsa_keys):
        client = make_app_client(None, rsa_keys[0])

        assert isinstance(client.credentials, GitHubInstallationToken)
        assert client.credentials.installation_id == INSTALLATION_ID
        assert client.app_jwt is client.credentials.app

    def test_from_env(self, clean_env, rsa_keys):
        clean_env.delenv("GITHUB_TOKEN", raising=False)
        clean_env.delenv("GITHUB_API_KEY", raising=False)
        clean_env.delenv("GITHUB_CLIENT_ID", raising=False)
        clean_env.delenv("GITHUB_CLIENT_SECRET", raising=False)
        clean_env.delenv("GITHUB_HOST", raising=False)
        clean_env.setenv("GITHUB_APP_ID", APP_ID)
        clean_env.setenv("GITHUB_PRIVATE_KEY", rsa_keys[0].replace("\n", "\\n"))
        clean_env.setenv("GITHUB_INSTALLATION_ID", str(INSTALLATION_ID))

        client = GitHubClient.from_env()

        assert isinstance(client.credentials, GitHubInstallationToken)
        assert client.credentials.installation_id == INSTALLATION_ID
        assert client.credentials.app.private_key == rsa_keys[0]
