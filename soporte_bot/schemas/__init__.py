from soporte_bot.schemas.control import BlacklistRequest, BlacklistResponse, DispatchRequest, SendMessageRequest
from soporte_bot.schemas.conversation import ConversationRecord
from soporte_bot.schemas.webhook import WebhookResponse, WhatsAppWebhook

__all__ = [
    "BlacklistRequest",
    "BlacklistResponse",
    "ConversationRecord",
    "DispatchRequest",
    "SendMessageRequest",
    "WebhookResponse",
    "WhatsAppWebhook",
]
