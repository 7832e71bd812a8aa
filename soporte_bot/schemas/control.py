from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):
    number: str = Field(min_length=1)
    message: str
    url_media: Optional[str] = Field(default=None, alias="urlMedia")

    model_config = ConfigDict(populate_by_name=True)


class DispatchRequest(BaseModel):
    number: str = Field(min_length=1)
    name: str


class BlacklistRequest(BaseModel):
    number: str = Field(min_length=1)
    intent: Literal["add", "remove"]


class BlacklistResponse(BaseModel):
    status: str
    number: str
    intent: str


class StatsResponse(BaseModel):
    status: str
    conversations: int
    blacklisted: int
