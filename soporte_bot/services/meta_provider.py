import mimetypes
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import httpx

from soporte_bot.logging_config import get_logger

logger = get_logger("meta_provider")


@dataclass
class DeliveryResult:
    ok: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def delivered(message_id: Optional[str]) -> "DeliveryResult":
        return DeliveryResult(ok=True, message_id=message_id)

    @staticmethod
    def failed(error: str, code: str = "provider_error") -> "DeliveryResult":
        return DeliveryResult(ok=False, error=error, error_code=code)


def guess_media_type(media_url: str) -> str:
    """WhatsApp media kind for a URL: image, video, audio or document."""
    path = urlparse(media_url or "").path
    mime_type, _ = mimetypes.guess_type(path)
    if mime_type:
        kind = mime_type.split("/", 1)[0]
        if kind in {"image", "video", "audio"}:
            return kind
    return "document"


class MetaProvider:
    """Sends WhatsApp messages through the Meta Cloud API."""

    BASE_URL = "{graph_url}/{version}/{number_id}/messages"

    def __init__(
        self,
        jwt_token: Optional[str],
        number_id: Optional[str],
        version: str = "v22.0",
        graph_url: str = "https://graph.facebook.com",
        timeout: float = 30.0,
    ):
        self.jwt_token = jwt_token
        self.number_id = number_id
        self.version = version
        self.timeout = timeout
        self.url = self.BASE_URL.format(
            graph_url=graph_url.rstrip("/"),
            version=version,
            number_id=number_id,
        )

    def is_configured(self) -> bool:
        return bool(self.jwt_token and self.number_id)

    def _make_request(self, number: str, payload: dict) -> DeliveryResult:
        """POST one message to the Graph API."""
        if not self.is_configured():
            logger.error("Meta credentials missing (JWT_TOKEN / NUMBER_ID not set)")
            return DeliveryResult.failed("Provider credentials are not configured", "missing_credentials")

        data = {"messaging_product": "whatsapp", "recipient_type": "individual", "to": number, **payload}
        headers = {"Authorization": f"Bearer {self.jwt_token}"}
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.url, json=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Meta API transport error: {e}", extra={"context": {"number": number}})
            return DeliveryResult.failed(str(e), "transport_error")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code != 200:
            error = body.get("error", {}).get("message") if isinstance(body, dict) else None
            logger.warning(
                f"Meta API rejected message: status={response.status_code}",
                extra={"context": {"number": number, "body": response.text[:200]}},
            )
            return DeliveryResult.failed(error or f"HTTP {response.status_code}", "provider_error")

        messages = body.get("messages") or [{}]
        message_id = messages[0].get("id")
        logger.info("Delivered via Meta", extra={"context": {"number": number, "message_id": message_id}})
        return DeliveryResult.delivered(message_id)

    def send_text(self, number: str, text: str) -> DeliveryResult:
        if not text:
            return DeliveryResult.failed("Empty message", "empty_message")
        return self._make_request(number, {"type": "text", "text": {"preview_url": False, "body": text}})

    def send_media(self, number: str, media_url: str, caption: Optional[str] = None) -> DeliveryResult:
        kind = guess_media_type(media_url)
        media: dict = {"link": media_url}
        # WhatsApp rejects captions on audio
        if caption and caption.strip() and kind != "audio":
            media["caption"] = caption.strip()
        return self._make_request(number, {"type": kind, kind: media})
