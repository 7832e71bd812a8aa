from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse

from soporte_bot.dependencies import get_bot
from soporte_bot.logging_config import get_logger
from soporte_bot.schemas.control import (
    BlacklistRequest,
    BlacklistResponse,
    DispatchRequest,
    SendMessageRequest,
    StatsResponse,
)
from soporte_bot.services.bot import SupportBot
from soporte_bot.services.flow_service import EVENT_REGISTER, EVENT_SAMPLES

logger = get_logger("control")

router = APIRouter(prefix="/v1")


@router.post("/messages", response_class=PlainTextResponse)
def send_message(request: SendMessageRequest, bot: SupportBot = Depends(get_bot)):
    """Send a message (optionally with media) to a number."""
    result = bot.send_message(request.number, request.message, request.url_media)
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return "sended"


@router.post("/register", response_class=PlainTextResponse)
def trigger_register(request: DispatchRequest, bot: SupportBot = Depends(get_bot)):
    bot.dispatch(EVENT_REGISTER, request.number, request.name)
    return "trigger"


@router.post("/samples", response_class=PlainTextResponse)
def trigger_samples(request: DispatchRequest, bot: SupportBot = Depends(get_bot)):
    bot.dispatch(EVENT_SAMPLES, request.number, request.name)
    return "trigger"


@router.post("/blacklist", response_model=BlacklistResponse)
def manage_blacklist(request: BlacklistRequest, bot: SupportBot = Depends(get_bot)):
    if request.intent == "add":
        bot.blacklist.add(request.number)
    else:
        bot.blacklist.remove(request.number)
    return BlacklistResponse(status="ok", number=request.number, intent=request.intent)


@router.get("/stats", response_model=StatsResponse)
def stats(bot: SupportBot = Depends(get_bot)):
    return StatsResponse(
        status="ok",
        conversations=bot.store.active_count(),
        blacklisted=len(bot.blacklist),
    )
