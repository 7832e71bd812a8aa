"""Scripted support conversation.

Every inbound text is routed through an ordered table of keyword triggers
and, when none matches, to the capture the conversation is waiting on.
Handlers never touch the store: they return the messages to send plus the
field changes (or a clear) for the caller to apply.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from soporte_bot.logging_config import get_logger
from soporte_bot.schemas.conversation import ConversationRecord, empty_ticket
from soporte_bot.services.state_machine import (
    FlowStep,
    capture_detail,
    close_ticket,
    open_menu,
    select_category,
)
from soporte_bot.services.support_options import SUPPORT_OPTIONS, get_option

logger = get_logger("flow_service")

GREETING_KEYWORDS = (
    "hola",
    "holaa",
    "holaaa",
    "buenas",
    "buenos días",
    "buen dia",
    "buenas tardes",
    "buenas noches",
    "hey",
    "que tal",
    "saludos",
)
SUPPORT_KEYWORDS = ("soporte", "support", "ayuda", "error")

MSG_GREETING = "¡Hola! 👋 ¿Necesitas ayuda con algo?"
MSG_MENU = "\n".join(
    [
        "🛠 *Soporte Técnico*",
        "Selecciona el tipo de problema:",
        "",
        "1️⃣ No abre el sistema",
        "2️⃣ Licencia desactivada",
        "3️⃣ Error en portal web",
        "4️⃣ Solicitar cotización",
        "5️⃣ Otro problema",
        "",
        "Escribe solo el número de la opción.",
    ]
)
MSG_INVALID_OPTION = "Por favor escribe una opción válida (1-5)."
MSG_SUMMARY_HEADER = "📋 *Resumen de tu reporte:*\n"
MSG_ESCALATION_QUESTION = "\n¿Deseas ser contactado por un agente humano? (si/no)"
MSG_INVALID_YES_NO = "Por favor responde *si* o *no*."
MSG_HANDOFF = "👨‍💻 Perfecto, un agente te contactará pronto."
MSG_CLOSING = "👌 Entendido. Si necesitas algo más, escribe *soporte*."
MSG_REGISTERED = "¡Hola {name}! 👋 Gracias por registrarte."
MSG_SAMPLES = "📎 Te comparto algunos archivos de ejemplo."

EVENT_REGISTER = "REGISTER_FLOW"
EVENT_SAMPLES = "SAMPLES"


class UnknownFlowEventError(Exception):
    def __init__(self, event: str):
        self.event = event
        super().__init__(f"Unknown flow event: {event}")


@dataclass
class OutboundMessage:
    text: str
    media_url: Optional[str] = None


@dataclass
class FlowReply:
    messages: list[OutboundMessage] = field(default_factory=list)
    changes: dict = field(default_factory=dict)
    clear: bool = False
    handoff_summary: Optional[str] = None

    def texts(self) -> list[str]:
        return [message.text for message in self.messages]


def normalize_keyword(text: str) -> str:
    return " ".join((text or "").split()).casefold()


def _reply(*texts: str, **kwargs) -> FlowReply:
    return FlowReply(messages=[OutboundMessage(text) for text in texts], **kwargs)


def build_summary(record: ConversationRecord) -> Optional[str]:
    """Summary of the captured ticket, or None without a category."""
    option = get_option(record.option)
    if option is None:
        return None
    value = getattr(record, option.field)
    return f"{MSG_SUMMARY_HEADER}{option.label}\n{option.field_label}: {value}"


def _menu_changes(record: ConversationRecord) -> dict:
    changes = empty_ticket()
    changes["step"] = open_menu(record.step)
    return changes


# ---------------------------------------------------------------------------
# Keyword flows
# ---------------------------------------------------------------------------


def greeting_flow(text: str, record: ConversationRecord) -> FlowReply:
    if record.in_flow:
        logger.debug("Greeting while already in flow, redirect suppressed")
        return _reply(MSG_GREETING)

    changes = _menu_changes(record)
    changes["in_flow"] = True
    return _reply(MSG_GREETING, MSG_MENU, changes=changes)


def support_flow(text: str, record: ConversationRecord) -> FlowReply:
    return _reply(MSG_MENU, changes=_menu_changes(record))


# Evaluated in order; the first trigger set containing the message wins.
KEYWORD_FLOWS: list[tuple[frozenset[str], Callable[[str, ConversationRecord], FlowReply]]] = [
    (frozenset(normalize_keyword(k) for k in GREETING_KEYWORDS), greeting_flow),
    (frozenset(normalize_keyword(k) for k in SUPPORT_KEYWORDS), support_flow),
]


def match_keyword_flow(text: str) -> Optional[Callable[[str, ConversationRecord], FlowReply]]:
    keyword = normalize_keyword(text)
    for triggers, handler in KEYWORD_FLOWS:
        if keyword in triggers:
            return handler
    return None


# ---------------------------------------------------------------------------
# Captures
# ---------------------------------------------------------------------------


def category_capture(text: str, record: ConversationRecord) -> FlowReply:
    choice = (text or "").strip()
    option = SUPPORT_OPTIONS.get(choice)
    if option is None:
        return _reply(MSG_INVALID_OPTION, MSG_MENU)

    changes = empty_ticket()
    changes["option"] = option.key
    changes["step"] = select_category(record.step)
    return _reply(option.prompt, changes=changes)


def detail_capture(text: str, record: ConversationRecord) -> FlowReply:
    option = get_option(record.option)
    if option is None:
        logger.warning(
            "Detail received without a stored category, ignoring",
            extra={"context": {"option": record.option}},
        )
        return FlowReply()

    detail = text or ""
    if not detail.strip():
        return _reply(option.prompt)

    changes = empty_ticket()
    changes["option"] = option.key
    changes[option.field] = detail
    changes["step"] = capture_detail(record.step)

    summary = build_summary(record.model_copy(update=changes))
    return _reply(summary, MSG_ESCALATION_QUESTION, changes=changes)


def escalation_capture(text: str, record: ConversationRecord) -> FlowReply:
    if not record.option:
        return FlowReply(clear=True)

    answer = (text or "").strip().lower()
    if answer in ("si", "no"):
        # guard only: clearing resets the step to idle
        close_ticket(record.step)
    if answer == "si":
        return _reply(MSG_HANDOFF, clear=True, handoff_summary=build_summary(record))
    if answer == "no":
        return _reply(MSG_CLOSING, clear=True)

    return _reply(MSG_INVALID_YES_NO)


CAPTURES = {
    FlowStep.AWAITING_CATEGORY: category_capture,
    FlowStep.AWAITING_DETAIL: detail_capture,
    FlowStep.AWAITING_ESCALATION: escalation_capture,
}


def process_message(text: str, record: ConversationRecord) -> FlowReply:
    """Decide what to answer to one inbound text."""
    handler = match_keyword_flow(text)
    if handler is None:
        handler = CAPTURES.get(record.step)
    if handler is None:
        logger.debug("No flow matched an idle conversation")
        return FlowReply()
    return handler(text, record)


# ---------------------------------------------------------------------------
# Dispatched events
# ---------------------------------------------------------------------------


def register_event(record: ConversationRecord, name: str, sample_media: list[str]) -> FlowReply:
    changes = _menu_changes(record)
    changes["in_flow"] = True
    changes["name"] = name
    return _reply(MSG_REGISTERED.format(name=name), MSG_MENU, changes=changes)


def samples_event(record: ConversationRecord, name: str, sample_media: list[str]) -> FlowReply:
    reply = _reply(MSG_SAMPLES)
    reply.messages.extend(OutboundMessage(text="", media_url=url) for url in sample_media)
    return reply


EVENT_FLOWS = {
    EVENT_REGISTER: register_event,
    EVENT_SAMPLES: samples_event,
}


def dispatch(event: str, record: ConversationRecord, name: str, sample_media: Optional[list[str]] = None) -> FlowReply:
    """Run a flow triggered from outside the inbound message path."""
    handler = EVENT_FLOWS.get(event)
    if handler is None:
        raise UnknownFlowEventError(event)
    return handler(record, name, sample_media or [])
