"""Exceptions raised while building and dispatching messages."""

from enum import Enum
from typing import Optional


class Reason(str, Enum):
    """Why a message was rejected by validation."""

    MISSING_SENDER = "MissingSender"
    MISSING_RECIPIENT = "MissingRecipient"
    MISSING_SUBJECT = "MissingSubject"
    MISSING_CONTENT = "MissingContent"


_REASON_MESSAGES = {
    Reason.MISSING_SENDER: "Mail from email address is required",
    Reason.MISSING_RECIPIENT: "Mail to email address is required",
    Reason.MISSING_SUBJECT: "Mail subject is required",
    Reason.MISSING_CONTENT: "Mail content is required",
}


class MessageError(Exception):
    """Base class for every error raised by this package."""


class InvalidMessage(MessageError):
    """The assembled envelope failed validation. Nothing was sent."""

    def __init__(self, reason: Reason) -> None:
        self.reason = Reason(reason)
        super().__init__(_REASON_MESSAGES[self.reason])


class DeliveryFailed(MessageError):
    """The transport raised while delivering the envelope."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Delivery failed: {cause}")


class TransportInitFailed(MessageError):
    """The transport could not be created from the given settings."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)
