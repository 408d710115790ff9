"""SMTP mail builder package.

Fluent message builder with SMTP delivery, plus an MCP stdio server for
sending emails.
"""

from .builder import ContentSource, MessageBuilder, validate
from .config import SMTPSettings
from .errors import DeliveryFailed, InvalidMessage, MessageError, Reason, TransportInitFailed
from .transport import SMTPTransport, Transport

__all__ = [
    "ContentSource",
    "DeliveryFailed",
    "InvalidMessage",
    "MessageBuilder",
    "MessageError",
    "Reason",
    "SMTPSettings",
    "SMTPTransport",
    "Transport",
    "TransportInitFailed",
    "validate",
]

__version__ = "0.1.0"
