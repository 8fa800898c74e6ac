from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class MailMessage:
    to: str
    subject: str
    body: str
    kind: str


class MailProvider(ABC):
    @abstractmethod
    def send(self, message: MailMessage) -> None:
        """Hand the message to the delivery backend."""


OUTBOX_SIZE = 50


class LoggingMailProvider(MailProvider):
    """Logs outgoing mail and keeps the most recent messages in memory."""

    def __init__(self, outbox_size: int = OUTBOX_SIZE) -> None:
        self.outbox: deque[MailMessage] = deque(maxlen=outbox_size)

    def send(self, message: MailMessage) -> None:
        self.outbox.append(message)
        logger.info("Mail queued kind=%s to=%s subject=%s", message.kind, message.to, message.subject)


_provider: MailProvider = LoggingMailProvider()


def get_mail_provider() -> MailProvider:
    return _provider


def set_mail_provider(provider: MailProvider) -> None:
    global _provider
    _provider = provider


def send_verification_email(provider: MailProvider, *, to: str, name: str, url: str) -> None:
    provider.send(
        MailMessage(
            to=to,
            subject="Verify your email",
            body=f"Hi {name},\n\nConfirm your email address: {url}\n",
            kind="email_verification",
        )
    )


def send_password_reset_email(provider: MailProvider, *, to: str, name: str, url: str) -> None:
    provider.send(
        MailMessage(
            to=to,
            subject="Reset your password",
            body=f"Hi {name},\n\nReset your password: {url}\n\nIgnore this message if you did not ask for it.\n",
            kind="password_reset",
        )
    )
