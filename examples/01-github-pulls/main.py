"""
GitHub Pull Requests Example

This example shows the everyday shape of a provider client:
1. Build the client from environment variables
2. Fetch one resource
3. Collect a paginated list (Link headers are followed for you)

Environment:
    GITHUB_TOKEN   personal access token
    GITHUB_HOST    optional, for GitHub Enterprise (https://github.example.com/api/v3)

Run: python -m examples.01-github-pulls.main octocat hello-world
"""

import asyncio
import logging
import sys

from saasclients.core import ApiError, InMemoryHttpCache, NotFoundError, RateLimitError
from saasclients.providers.github import GitHubClient


async def main(owner: str, repo: str) -> None:
    # The cache turns repeated GETs into conditional requests
    async with GitHubClient.from_env(http_cache=InMemoryHttpCache()) as github:
        try:
            repository = await github.repos.get(owner, repo)
        except NotFoundError:
            print(f"{owner}/{repo} does not exist or the token cannot see it")
            return

        print(f"{repository.full_name}: {repository.description or 'no description'}")
        print(f"  default branch: {repository.default_branch}")
        print(f"  stars: {repository.stargazers_count}")

        try:
            pulls = await github.pulls.list_all(owner, repo, state="open", max_items=50)
        except RateLimitError as e:
            print(f"Rate limited, retry in {e.retry_after:.0f}s" if e.retry_after else "Rate limited")
            return
        except ApiError as e:
            print(f"GitHub error: {e}")
            return

        print(f"\n{len(pulls)} open pull request(s):")
        for pull in pulls:
            head = pull.head.ref if pull.head else "?"
            print(f"  #{pull.number} {pull.title} ({head})")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if len(sys.argv) != 3:
        print("usage: main.py <owner> <repo>")
        sys.exit(1)

    asyncio.run(main(sys.argv[1], sys.argv[2]))
