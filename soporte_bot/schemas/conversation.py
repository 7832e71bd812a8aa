from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

from soporte_bot.services.state_machine import FlowStep

OptionKey = Literal["1", "2", "3", "4", "5"]

DETAIL_FIELDS = (
    "error_message",
    "license_info",
    "portal_message",
    "quote_request",
    "other_issue",
)


class ConversationRecord(BaseModel):
    """Support ticket being collected for one WhatsApp number."""

    option: Optional[OptionKey] = None
    error_message: Optional[str] = None
    license_info: Optional[str] = None
    portal_message: Optional[str] = None
    quote_request: Optional[str] = None
    other_issue: Optional[str] = None
    in_flow: bool = False
    step: FlowStep = FlowStep.IDLE
    name: Optional[str] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def populated_details(self) -> dict[str, str]:
        return {field: getattr(self, field) for field in DETAIL_FIELDS if getattr(self, field)}

    def is_blank(self) -> bool:
        return (
            self.option is None
            and not self.populated_details()
            and not self.in_flow
            and self.step == FlowStep.IDLE
            and self.name is None
        )


def empty_ticket() -> dict:
    """Field values that discard the ticket in progress."""
    changes: dict = {field: None for field in DETAIL_FIELDS}
    changes["option"] = None
    return changes
