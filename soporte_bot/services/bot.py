from datetime import timedelta
from typing import Optional

from soporte_bot.config import Settings
from soporte_bot.logging_config import ConversationLogger, get_logger
from soporte_bot.services import flow_service
from soporte_bot.services.blacklist import Blacklist
from soporte_bot.services.conversation_store import ConversationStore
from soporte_bot.services.flow_service import FlowReply, OutboundMessage
from soporte_bot.services.meta_provider import DeliveryResult, MetaProvider, guess_media_type

logger = get_logger("bot")


def format_handoff_message(number: str, name: Optional[str], summary: str) -> str:
    """Notification forwarded to the support agent."""
    customer = name or "Desconocido"
    return f"🔔 *Nuevo reporte de soporte*\n\n*Cliente:* {customer}\n*Teléfono:* {number}\n\n{summary}"


class SupportBot:
    """Glue between the WhatsApp provider, the conversation store and the flows."""

    def __init__(
        self,
        provider: MetaProvider,
        store: ConversationStore,
        blacklist: Blacklist,
        sample_media: Optional[list[str]] = None,
        agent_number: Optional[str] = None,
    ):
        self.provider = provider
        self.store = store
        self.blacklist = blacklist
        self.sample_media = sample_media or []
        self.agent_number = agent_number

    def handle_inbound(self, number: str, text: str) -> list[OutboundMessage]:
        """Run the support flow for one inbound text and deliver the answer."""
        log = ConversationLogger("bot", number)
        if self.blacklist.contains(number):
            log.info("Ignoring message from blacklisted number")
            return []

        with self.store.lock(number):
            record = self.store.get(number)
            reply = flow_service.process_message(text, record)
            self._apply(number, reply)
            log.debug(
                "Flow processed",
                context={"step_before": record.step.value, "sent": len(reply.messages), "cleared": reply.clear},
            )
            self.deliver(number, reply.messages)

        if reply.handoff_summary:
            self.notify_agent(number, record.name, reply.handoff_summary)
        return reply.messages

    def dispatch(self, event: str, number: str, name: str) -> list[OutboundMessage]:
        """Trigger a named flow for a number, e.g. from the HTTP API."""
        with self.store.lock(number):
            record = self.store.get(number)
            reply = flow_service.dispatch(event, record, name, self.sample_media)
            self._apply(number, reply)
            ConversationLogger("bot", number).info("Flow dispatched", context={"event": event})
            self.deliver(number, reply.messages)
        return reply.messages

    def _apply(self, number: str, reply: FlowReply) -> None:
        if reply.clear:
            self.store.clear(number)
        elif reply.changes:
            self.store.update(number, **reply.changes)

    def deliver(self, number: str, messages: list[OutboundMessage]) -> list[DeliveryResult]:
        """Send messages one after another, keeping their order."""
        results = []
        for message in messages:
            result = self.send_message(number, message.text, message.media_url)
            if not result.ok:
                logger.warning(
                    "Failed to deliver flow message",
                    extra={"context": {"number": number, "error": result.error, "code": result.error_code}},
                )
            results.append(result)
        return results

    def send_message(self, number: str, message: str, media_url: Optional[str] = None) -> DeliveryResult:
        if not media_url:
            return self.provider.send_text(number, message)

        if message and guess_media_type(media_url) == "audio":
            text_result = self.provider.send_text(number, message)
            if not text_result.ok:
                return text_result
            return self.provider.send_media(number, media_url)
        return self.provider.send_media(number, media_url, caption=message)

    def notify_agent(self, number: str, name: Optional[str], summary: str) -> Optional[DeliveryResult]:
        if not self.agent_number:
            return None
        result = self.provider.send_text(self.agent_number, format_handoff_message(number, name, summary))
        if not result.ok:
            logger.error(
                "Agent notification failed",
                extra={"context": {"number": number, "error": result.error}},
            )
        return result


def build_bot(settings: Settings) -> SupportBot:
    idle_timeout = None
    if settings.session_idle_timeout_minutes > 0:
        idle_timeout = timedelta(minutes=settings.session_idle_timeout_minutes)

    provider = MetaProvider(
        jwt_token=settings.jwt_token,
        number_id=settings.number_id,
        version=settings.provider_version,
        graph_url=settings.graph_api_url,
        timeout=settings.http_timeout_seconds,
    )
    return SupportBot(
        provider=provider,
        store=ConversationStore(idle_timeout=idle_timeout),
        blacklist=Blacklist(),
        sample_media=settings.sample_media(),
        agent_number=settings.agent_number,
    )
