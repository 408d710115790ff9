"""Fluent builder that assembles an envelope and hands it to a transport."""

from typing import Any, List, Optional, Protocol

from .config import DEFAULT_PORT, SMTPSettings
from .errors import DeliveryFailed, InvalidMessage, Reason, TransportInitFailed
from .logger import get_logger
from .transport import Addresses, DeliveryReceipt, Envelope, SMTPTransport, Transport

logger = get_logger(__name__)


class ContentSource(Protocol):
    """Supplies default sender and subject and renders the HTML body."""

    sender: Optional[str]
    subject: Optional[str]

    async def render_contents(self) -> str:
        ...


def validate(envelope: Envelope) -> bool:
    """Return ``True`` if ``envelope`` can be sent, else raise :class:`InvalidMessage`.

    Checks run in a fixed order and the first failure is reported:
    sender, primary recipient, subject, then text or HTML body.
    """
    if not envelope.get("from"):
        raise InvalidMessage(Reason.MISSING_SENDER)
    if not envelope.get("to"):
        raise InvalidMessage(Reason.MISSING_RECIPIENT)
    if not envelope.get("subject"):
        raise InvalidMessage(Reason.MISSING_SUBJECT)
    if not envelope.get("text") and not envelope.get("html"):
        raise InvalidMessage(Reason.MISSING_CONTENT)
    return True


class MessageBuilder:
    """Compose one message through chained setters, then send it.

    Example::

        builder = MessageBuilder("smtp.example.com", user="me", password="secret")
        await builder.set_sender("me@example.com", "Me").set_recipients(
            ["a@example.com", "b@example.com"]
        ).set_subject("Hi").send_raw("hello")

    The builder can be reused after :meth:`reset`. It does not own the
    transport connection; each dispatch is a single awaited transport call.
    """

    validate = staticmethod(validate)

    def __init__(
        self,
        host: Optional[str] = None,
        port: int = DEFAULT_PORT,
        secure: bool = False,
        user: Optional[str] = None,
        password: Optional[str] = None,
        *,
        transport: Optional[Transport] = None,
    ) -> None:
        if transport is None:
            try:
                settings = SMTPSettings(
                    host=host or "",
                    port=port or DEFAULT_PORT,
                    secure=bool(secure),
                    user=user,
                    password=password,
                )
                transport = SMTPTransport(settings)
            except Exception as e:
                raise TransportInitFailed(f"Cannot create SMTP transport: {e}", cause=e) from e
        self.transport = transport

        self.recipients: Optional[Addresses] = None
        self.cc: Optional[Addresses] = None
        self.bcc: Optional[Addresses] = None
        self.sender: Optional[str] = None
        self.subject: Optional[str] = None
        self.attachments: Optional[List[Any]] = None
        self.last_receipt: Optional[DeliveryReceipt] = None

    @classmethod
    def from_env(cls) -> "MessageBuilder":
        """Create a builder whose transport is configured from ``SMTP_*`` variables."""
        try:
            settings = SMTPSettings.from_env()
        except ValueError as e:
            raise TransportInitFailed(f"Invalid SMTP settings: {e}", cause=e) from e
        return cls(transport=SMTPTransport(settings))

    def set_recipients(self, addr: Addresses) -> "MessageBuilder":
        self.recipients = addr
        return self

    def set_cc(self, addr: Addresses) -> "MessageBuilder":
        self.cc = addr
        return self

    def set_bcc(self, addr: Addresses) -> "MessageBuilder":
        self.bcc = addr
        return self

    def set_sender(self, email: str, name: Optional[str] = None) -> "MessageBuilder":
        """Set the sender, shown as ``"name" email`` when a name is given."""
        self.sender = f'"{name}" {email}' if name else email
        return self

    def set_attachments(self, files: List[Any]) -> "MessageBuilder":
        """Attachment descriptors are passed to the transport untouched."""
        self.attachments = files
        return self

    def set_subject(self, text: str) -> "MessageBuilder":
        """Set the subject, overriding the one a content source would supply."""
        self.subject = text
        return self

    def _basic_envelope(self, sender: Optional[str], subject: Optional[str]) -> Envelope:
        envelope: Envelope = {
            "from": sender,
            "to": self.recipients,
            "subject": subject,
            "cc": self.cc or None,
            "bcc": self.bcc or None,
        }
        if self.attachments:
            envelope["attachments"] = self.attachments
        return envelope

    async def _dispatch(self, envelope: Envelope) -> "MessageBuilder":
        try:
            validate(envelope)
        except InvalidMessage as e:
            logger.warning("Message rejected: %s", e.reason.value)
            raise

        logger.debug("Sending message %r to %r", envelope["subject"], envelope["to"])
        try:
            receipt = await self.transport.send_message(envelope)
        except Exception as e:
            logger.warning("Delivery failed: %s", e)
            raise DeliveryFailed(e) from e

        self.last_receipt = receipt
        logger.info("Message delivered: %s", receipt.get("messageId") if isinstance(receipt, dict) else receipt)
        return self

    async def send_from_source(self, source: ContentSource) -> "MessageBuilder":
        """Send with an HTML body rendered by ``source``.

        Sender and subject set on the builder win; otherwise the source's
        defaults are used. Builder state is not modified by the fallback.
        """
        envelope = self._basic_envelope(
            self.sender or source.sender,
            self.subject or source.subject,
        )
        envelope["html"] = await source.render_contents()
        return await self._dispatch(envelope)

    async def send_raw(self, text: str) -> "MessageBuilder":
        """Send ``text`` as the plain-text body."""
        envelope = self._basic_envelope(self.sender, self.subject)
        envelope["text"] = text
        return await self._dispatch(envelope)

    def reset(self) -> "MessageBuilder":
        """Clear every draft field and the last receipt. The transport is kept."""
        self.recipients = None
        self.cc = None
        self.bcc = None
        self.sender = None
        self.subject = None
        self.attachments = None
        self.last_receipt = None
        return self
