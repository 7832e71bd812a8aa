from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from soporte_bot.dependencies import get_bot
from soporte_bot.main import app
from soporte_bot.services.blacklist import Blacklist
from soporte_bot.services.bot import SupportBot
from soporte_bot.services.conversation_store import ConversationStore
from soporte_bot.services.meta_provider import DeliveryResult, MetaProvider


@pytest.fixture
def provider():
    """Provider mock that records every send and always succeeds."""
    mock = Mock(spec=MetaProvider)
    mock.send_text.return_value = DeliveryResult.delivered("wamid.test")
    mock.send_media.return_value = DeliveryResult.delivered("wamid.media")
    return mock


@pytest.fixture
def store():
    return ConversationStore()


@pytest.fixture
def bot(provider, store):
    return SupportBot(provider=provider, store=store, blacklist=Blacklist())


@pytest.fixture
def client(bot):
    app.dependency_overrides[get_bot] = lambda: bot
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
