from typing import Optional

from soporte_bot.config import settings
from soporte_bot.services.bot import SupportBot, build_bot

_bot: Optional[SupportBot] = None


def get_bot() -> SupportBot:
    """Process-wide bot shared by every request."""
    global _bot
    if _bot is None:
        _bot = build_bot(settings)
    return _bot
