"""Centralized logging configuration with PII redaction.

Invoices carry bank accounts (BT-84, BT-91), e-mail addresses (BT-43,
BT-58, electronic addresses) and payment card numbers (BT-87); none of them
may end up in clear text in log output.
"""

import logging
import re
from typing import Optional

from .config import settings


class PIIRedactionFilter(logging.Filter):
    """Filter to redact PII from log messages."""

    def __init__(self):
        super().__init__()
        # IBAN pattern: 2 letters + 2 digits + up to 30 alphanumeric characters
        self.iban_pattern = re.compile(r'\b([A-Z]{2}\d{2}[A-Z0-9]{11,30})\b')
        # Email pattern: word characters, @, word characters, ., word characters
        self.email_pattern = re.compile(r'(\b\S+@\S+\.\S+\b)')
        # Card number pattern: 12 to 19 digits, optionally grouped
        self.card_pattern = re.compile(r'\b(\d(?:[ -]?\d){11,18})\b')

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact PII from log record message."""
        if record.msg:
            record.msg = self.redact(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: self.redact(value) if isinstance(value, str) else value
                    for key, value in record.args.items()
                }
            else:
                record.args = tuple(
                    self.redact(arg) if isinstance(arg, str) else arg for arg in record.args
                )

        return True

    def redact(self, text: str) -> str:
        text = self.iban_pattern.sub(self._mask_iban, text)
        text = self.email_pattern.sub(self._mask_email, text)
        text = self.card_pattern.sub(self._mask_card, text)
        return text

    def _mask_iban(self, match) -> str:
        """Mask IBAN: show first 2 chars, mask the rest."""
        iban = match.group(1)
        return iban[:2] + "*" * (len(iban) - 2)

    def _mask_email(self, match) -> str:
        """Mask email: show first char of user, keep domain."""
        email = match.group(1)
        user, domain = email.split("@", 1)
        if len(user) <= 1:
            masked_user = "*"
        else:
            masked_user = user[0] + "*" * (len(user) - 1)
        return f"{masked_user}@{domain}"

    def _mask_card(self, match) -> str:
        """Mask card number: keep the last 4 digits."""
        digits = re.sub(r"\D", "", match.group(1))
        return "*" * (len(digits) - 4) + digits[-4:]


def get_logger(name: str) -> logging.Logger:
    """Get a logger with PII redaction applied."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, PIIRedactionFilter) for f in logger.filters):
        logger.addFilter(PIIRedactionFilter())
    return logger


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the ``facturx`` logger and return it."""
    logger = get_logger("facturx")
    logger.setLevel((level or settings.log_level).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)
    return logger
