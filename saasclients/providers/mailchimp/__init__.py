"""
Mailchimp provider.

Usage:
    from saasclients.providers.mailchimp import MailchimpClient, MailchimpConfig

    client = MailchimpClient(MailchimpConfig(api_key="abc123-us6"))
    campaigns = await client.campaigns.list_all(status="sent")
"""

from saasclients.providers.mailchimp.client import (
    Campaigns,
    Lists,
    MailchimpClient,
    MailchimpConfig,
)
from saasclients.providers.mailchimp.schemas import (
    AudienceList,
    Campaign,
    CampaignStatus,
    Member,
    MemberCreate,
    MemberStatus,
)

__all__ = [
    "AudienceList",
    "Campaign",
    "CampaignStatus",
    "Campaigns",
    "Lists",
    "MailchimpClient",
    "MailchimpConfig",
    "Member",
    "MemberCreate",
    "MemberStatus",
]
