"""
Slack provider.

Usage:
    from saasclients.providers.slack import SlackClient, SlackConfig

    client = SlackClient(SlackConfig(token="xoxb-..."))
    users = await client.users.list_all()
"""

from saasclients.providers.slack.client import (
    Chat,
    Conversations,
    OAuth,
    SlackClient,
    SlackConfig,
    Users,
)
from saasclients.providers.slack.schemas import (
    ChatPostMessage,
    Conversation,
    ConversationHistory,
    ConversationsList,
    Message,
    OAuthAccess,
    PostMessageResponse,
    User,
)

__all__ = [
    "Chat",
    "ChatPostMessage",
    "Conversation",
    "ConversationHistory",
    "Conversations",
    "ConversationsList",
    "Message",
    "OAuth",
    "OAuthAccess",
    "PostMessageResponse",
    "SlackClient",
    "SlackConfig",
    "User",
    "Users",
]
