"""Email channel port — abstract interface for transactional email delivery."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str
    html_body: str | None = None


@dataclass(frozen=True)
class SendResult:
    """Outcome of one delivery attempt. Adapters never raise for a failed send."""

    success: bool
    message_id: str | None = None
    error: str | None = None


class EmailPort(ABC):
    """Abstract interface for email adapters."""

    @abstractmethod
    def send(self, message: EmailMessage) -> SendResult:
        """Hand ``message`` to the email provider."""
        ...
