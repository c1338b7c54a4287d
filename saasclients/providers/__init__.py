"""
Provider clients.

Each provider package follows the same layout:

    providers/
    ├── github/
    │   ├── client.py     # GitHubConfig, GitHubClient, resource classes
    │   └── schemas.py    # Pydantic models
    ├── stripe/
    ├── slack/
    ├── zoom/
    ├── shopify/
    ├── okta/
    ├── sendgrid/
    ├── mailchimp/
    ├── google/           # SheetsClient, AdminClient
    ├── docusign/
    └── shipbob/

Import clients from their package:

    from saasclients.providers.github import GitHubClient, GitHubConfig
"""
