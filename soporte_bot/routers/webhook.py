from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from soporte_bot.config import settings
from soporte_bot.dependencies import get_bot
from soporte_bot.logging_config import get_logger
from soporte_bot.schemas.webhook import WebhookResponse, WhatsAppWebhook
from soporte_bot.services.bot import SupportBot

logger = get_logger("webhook")

router = APIRouter()


@router.get("/webhook", response_class=PlainTextResponse)
def verify_webhook(
    mode: str = Query(default="", alias="hub.mode"),
    token: str = Query(default="", alias="hub.verify_token"),
    challenge: str = Query(default="", alias="hub.challenge"),
):
    """Meta subscription handshake."""
    if mode == "subscribe" and settings.verify_token and token == settings.verify_token:
        logger.info("Webhook subscription verified")
        return challenge
    logger.warning("Webhook verification rejected", extra={"context": {"mode": mode}})
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification failed")


@router.post("/webhook", response_model=WebhookResponse)
def receive_webhook(payload: WhatsAppWebhook, bot: SupportBot = Depends(get_bot)):
    """Handle inbound WhatsApp messages."""
    processed = 0
    for message in payload.inbound_messages():
        text = message.body()
        if text is None:
            logger.debug(
                "Skipping non-text message",
                extra={"context": {"number": message.from_number, "type": message.type}},
            )
            continue
        bot.handle_inbound(message.from_number, text)
        processed += 1

    return WebhookResponse(status="ok", processed=processed)
