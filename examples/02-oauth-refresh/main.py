"""
OAuth Refresh Example

Zoom access tokens live for an hour. This example shows the full cycle:
1. Send the user to the consent URL
2. Exchange the returned code for a token pair
3. Let the client refresh on expiry and persist every new pair

Environment:
    ZOOM_CLIENT_ID, ZOOM_CLIENT_SECRET, ZOOM_REDIRECT_URI

Run: python -m examples.02-oauth-refresh.main
"""

import asyncio
import json
import logging
from pathlib import Path

import httpx

from saasclients.config import load_provider_settings
from saasclients.core import OAuth2Credentials, OAuth2Token
from saasclients.providers.zoom import ZoomClient, ZoomConfig
from saasclients.providers.zoom.client import CONSENT_ENDPOINT, TOKEN_ENDPOINT

TOKEN_FILE = Path(".zoom-token.json")


def save_token(token: OAuth2Token) -> None:
    """Persist the latest token pair; Zoom invalidates the old refresh token."""
    TOKEN_FILE.write_text(json.dumps(token.model_dump(by_alias=True)), encoding="utf-8")
    print(f"Saved new token pair to {TOKEN_FILE}")


async def authorize(credentials: OAuth2Credentials) -> None:
    print("Open this URL and approve access:")
    print(f"  {credentials.user_consent_url(scopes=['user:read', 'meeting:write'])}")
    code = input("Paste the `code` query parameter from the redirect: ").strip()

    async with httpx.AsyncClient() as http:
        await credentials.get_access_token(http, code)


async def main() -> None:
    settings = load_provider_settings("zoom")
    stored = json.loads(TOKEN_FILE.read_text(encoding="utf-8")) if TOKEN_FILE.exists() else {}

    config = ZoomConfig(
        client_id=settings.require("client_id"),
        client_secret=settings.require("client_secret"),
        redirect_uri=settings.require("redirect_uri"),
        access_token=stored.get("access_token", ""),
        refresh_token=stored.get("refresh_token", ""),
    )

    async with ZoomClient(config, on_refresh=save_token) as zoom:
        credentials = zoom.credentials
        assert isinstance(credentials, OAuth2Credentials)
        assert credentials.token_endpoint == TOKEN_ENDPOINT
        assert credentials.consent_endpoint == CONSENT_ENDPOINT

        if not credentials.refresh_token:
            await authorize(credentials)

        me = await zoom.users.get()
        print(f"Signed in as {me.email}")

        meetings = await zoom.meetings.list_all(type="upcoming", max_items=10)
        for meeting in meetings:
            print(f"  {meeting.start_time}  {meeting.topic}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
