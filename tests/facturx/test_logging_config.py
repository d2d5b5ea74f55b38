"""Tests for PII redaction in logs and the settings layer."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from facturx.core.config import Settings
from facturx.core.logging import PIIRedactionFilter, configure_logging, get_logger


@pytest.fixture
def redaction() -> PIIRedactionFilter:
    return PIIRedactionFilter()


def test_iban_is_masked(redaction: PIIRedactionFilter) -> None:
    assert redaction.redact("IBAN DE02120300000000202051") == "IBAN DE" + "*" * 20


def test_email_is_masked(redaction: PIIRedactionFilter) -> None:
    assert redaction.redact("contact hans@lieferant.example") == "contact h***@lieferant.example"


def test_card_number_keeps_last_four_digits(redaction: PIIRedactionFilter) -> None:
    assert redaction.redact("card 4111 1111 1111 1111") == "card ************1111"


def test_plain_text_is_untouched(redaction: PIIRedactionFilter) -> None:
    assert redaction.redact("Invoice RE-2024-0117 total 535.82") == "Invoice RE-2024-0117 total 535.82"


def test_logger_redacts_message_and_args(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("facturx.tests.redaction")
    with caplog.at_level(logging.INFO, logger="facturx.tests.redaction"):
        logger.info("Transfer to DE02120300000000202051 for %s", "einkauf@kunde.example")
    message = caplog.records[-1].getMessage()
    assert "DE02120300000000202051" not in message
    assert "einkauf@kunde.example" not in message
    assert "e******@kunde.example" in message


def test_dict_args_are_redacted(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("facturx.tests.mapping")
    with caplog.at_level(logging.INFO, logger="facturx.tests.mapping"):
        logger.info("account %(iban)s", {"iban": "DE02120300000000202051"})
    assert caplog.records[-1].getMessage() == "account DE" + "*" * 20


def test_get_logger_adds_filter_once() -> None:
    first = get_logger("facturx.tests.idempotent")
    second = get_logger("facturx.tests.idempotent")
    assert first is second
    assert sum(isinstance(f, PIIRedactionFilter) for f in first.filters) == 1


def test_configure_logging_sets_level() -> None:
    logger = configure_logging("debug")
    try:
        assert logger.name == "facturx"
        assert logger.level == logging.DEBUG
        handler_count = len(logger.handlers)
        configure_logging("warning")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == handler_count
    finally:
        logger.setLevel(logging.NOTSET)


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("LOG_LEVEL", "XML_PRETTY_PRINT", "AMOUNT_DECIMAL_PLACES"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.log_level == "INFO"
    assert settings.xml_pretty_print is True
    assert settings.amount_decimal_places == 2


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AMOUNT_DECIMAL_PLACES", "4")
    monkeypatch.setenv("XML_PRETTY_PRINT", "false")
    settings = Settings()
    assert settings.amount_decimal_places == 4
    assert settings.xml_pretty_print is False


@pytest.mark.parametrize("raw, expected", [("debug", "DEBUG"), ("Warning", "WARNING"), ("verbose", "INFO")])
def test_log_level_is_normalized(monkeypatch: pytest.MonkeyPatch, raw: str, expected: str) -> None:
    monkeypatch.setenv("LOG_LEVEL", raw)
    assert Settings().log_level == expected


def test_negative_decimal_places_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AMOUNT_DECIMAL_PLACES", "-1")
    with pytest.raises(ValidationError):
        Settings()
