"""Tests for engine construction from settings."""

import logging
from unittest.mock import AsyncMock

import pytest

from alert_escalation.config import Settings
from alert_escalation.main import build_engine
from alert_escalation.services.telegram_sender import TelegramSender


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_wires_telegram_when_configured():
    engine = build_engine(
        make_settings(telegram_bot_token="fake-token", telegram_chat_id="42")
    )

    telegram = engine._dispatcher._senders["telegram"]
    assert isinstance(telegram, TelegramSender)
    assert telegram.chat_id == "42"


def test_no_telegram_without_token():
    engine = build_engine(make_settings())

    assert "telegram" not in engine._dispatcher._senders


def test_explicit_senders_take_precedence():
    telegram = AsyncMock()
    whatsapp = AsyncMock()

    engine = build_engine(
        make_settings(telegram_bot_token="fake-token", telegram_chat_id="42"),
        senders={"telegram": telegram, "whatsapp": whatsapp},
    )

    assert engine._dispatcher._senders["telegram"] is telegram
    assert engine._dispatcher._senders["whatsapp"] is whatsapp


def test_config_comes_from_settings():
    engine = build_engine(
        make_settings(
            escalate_telegram_to_whatsapp_ms=1000,
            auto_call_enabled=False,
            ack_retention_minutes=2,
        )
    )

    config = engine.get_config()
    assert config.tier1_delay_ms == 1000
    assert config.enabled is False
    assert config.ack_retention_ms == 120_000


def test_configures_logging():
    build_engine(make_settings(log_format="text", log_level="DEBUG"))

    assert logging.getLogger().level == logging.DEBUG
