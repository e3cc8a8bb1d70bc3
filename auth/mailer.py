"""
auth/mailer.py -- Out-of-band delivery of 2FA codes.

EmailClient is the capability AuthService needs: send one message to one
recipient. MockEmailClient writes the message to the log instead of an SMTP
relay -- the dev and test backing. A real relay implements the same single
coroutine and raises EmailDeliveryError on failure.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from typing import Protocol

from auth.models import Email

logger = logging.getLogger("authservice.email")


class EmailClient(Protocol):
    async def send_email(self, recipient: Email, subject: str, content: str) -> None: ...


class MockEmailClient:
    """Logs outgoing mail. Keeps the last message per recipient for tests."""

    def __init__(self) -> None:
        self.outbox: dict[Email, tuple[str, str]] = {}

    async def send_email(self, recipient: Email, subject: str, content: str) -> None:
        logger.info("Sending email to %s with subject %r: %s", recipient, subject, content)
        self.outbox[recipient] = (subject, content)
