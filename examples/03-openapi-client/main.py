"""
OpenAPI Client Example

The hand-written provider clients cover the common endpoints. For the rest,
SpecClient reads the vendor's OpenAPI document and exposes every operation,
with the same auth, retry and error mapping.

Environment:
    GITHUB_TOKEN   personal access token

Run: python -m examples.03-openapi-client.main
"""

import asyncio
import logging

from saasclients.config import load_provider_settings
from saasclients.core import BearerToken, ClientConfig
from saasclients.openapi import SpecClient

GITHUB_SPEC = (
    "https://raw.githubusercontent.com/github/rest-api-description/main/"
    "descriptions/api.github.com/api.github.com.yaml"
)


async def main() -> None:
    token = load_provider_settings("github").require("token")

    github = await SpecClient.from_spec_url(
        GITHUB_SPEC,
        ClientConfig(base_url="https://api.github.com"),
        tags=["repos", "pulls"],
        credentials=BearerToken(token, prefix="token"),
    )

    async with github:
        print(f"{github.title} {github.version}")
        for tag, operation_ids in github.operations_by_tag().items():
            print(f"  {tag}: {len(operation_ids)} operations")

        # Resource groups follow the tags, method names drop the tag prefix
        repo = await github.repos.get(owner="octocat", repo="hello-world")
        print(f"\n{repo['full_name']} has {repo['stargazers_count']} stars")

        # Or call by operationId
        pulls = await github.call("pulls/list", owner="octocat", repo="hello-world", state="open")
        print(f"{len(pulls)} open pull request(s) on the first page")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
