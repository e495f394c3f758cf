# Content Module
# Fetches rendered Panchang tables and forwards them to a user

from panchangbot.modules.content.api import ContentClient
from panchangbot.modules.content.delivery import ContentDelivery, ContentHandler

__all__ = [
    "ContentClient",
    "ContentDelivery",
    "ContentHandler",
]
