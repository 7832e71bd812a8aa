from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WhatsAppText(BaseModel):
    body: str


class WhatsAppReply(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None


class WhatsAppInteractive(BaseModel):
    type: str  # button_reply, list_reply
    button_reply: Optional[WhatsAppReply] = None
    list_reply: Optional[WhatsAppReply] = None


class WhatsAppButton(BaseModel):
    text: Optional[str] = None
    payload: Optional[str] = None


class WhatsAppMessage(BaseModel):
    id: Optional[str] = None
    from_number: str = Field(alias="from")  # "from" is reserved in Python
    timestamp: Optional[str] = None
    type: str = "text"
    text: Optional[WhatsAppText] = None
    interactive: Optional[WhatsAppInteractive] = None
    button: Optional[WhatsAppButton] = None

    model_config = ConfigDict(populate_by_name=True)

    def body(self) -> Optional[str]:
        """Text the customer typed or the title of the option they tapped."""
        if self.type == "text" and self.text:
            return self.text.body
        if self.type == "interactive" and self.interactive:
            reply = self.interactive.button_reply or self.interactive.list_reply
            return reply.title if reply else None
        if self.type == "button" and self.button:
            return self.button.text or self.button.payload
        return None


class WhatsAppProfile(BaseModel):
    name: Optional[str] = None


class WhatsAppContact(BaseModel):
    wa_id: Optional[str] = None
    profile: Optional[WhatsAppProfile] = None


class WhatsAppStatus(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    recipient_id: Optional[str] = None


class WhatsAppMetadata(BaseModel):
    display_phone_number: Optional[str] = None
    phone_number_id: Optional[str] = None


class WhatsAppValue(BaseModel):
    messaging_product: Optional[str] = None
    metadata: Optional[WhatsAppMetadata] = None
    contacts: list[WhatsAppContact] = []
    messages: list[WhatsAppMessage] = []
    statuses: list[WhatsAppStatus] = []


class WhatsAppChange(BaseModel):
    field: str = "messages"
    value: WhatsAppValue


class WhatsAppEntry(BaseModel):
    id: Optional[str] = None
    changes: list[WhatsAppChange] = []


class WhatsAppWebhook(BaseModel):
    object: str = "whatsapp_business_account"
    entry: list[WhatsAppEntry] = []

    def inbound_messages(self) -> list[WhatsAppMessage]:
        messages = []
        for entry in self.entry:
            for change in entry.changes:
                if change.field != "messages":
                    continue
                messages.extend(change.value.messages)
        return messages


class WebhookResponse(BaseModel):
    status: str = "ok"
    processed: int = 0
