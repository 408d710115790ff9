"""SMTP delivery of assembled envelopes."""

import re
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

from email.message import EmailMessage
from email.utils import formataddr, make_msgid

import aiosmtplib

from .config import SMTPSettings
from .logger import get_logger

logger = get_logger(__name__)

Envelope = Dict[str, Any]
DeliveryReceipt = Dict[str, Any]
Addresses = Union[str, List[str]]


class Transport(Protocol):
    """Anything able to deliver an envelope."""

    async def send_message(self, envelope: Envelope) -> DeliveryReceipt:
        ...


def _as_list(addresses: Optional[Addresses]) -> List[str]:
    if not addresses:
        return []
    if isinstance(addresses, str):
        return [addresses]
    return list(addresses)


_NAMED_ADDRESS = re.compile(r'^"(?P<name>.*)"\s+(?P<addr>[^\s"<>]+)$')


def _header_address(address: str) -> str:
    """Rewrite ``"Name" addr`` into the RFC 5322 ``Name <addr>`` form, quoting the name as needed."""
    match = _NAMED_ADDRESS.match(address)
    if match is None:
        return address
    return formataddr((match.group("name"), match.group("addr")))


def _add_attachment(msg: EmailMessage, descriptor: Mapping[str, Any]) -> None:
    if not isinstance(descriptor, Mapping) or "filename" not in descriptor or "content" not in descriptor:
        raise ValueError(f"Attachment descriptor needs 'filename' and 'content' keys: {descriptor!r}")
    content = descriptor["content"]
    maintype, _, subtype = descriptor.get("contentType", "application/octet-stream").partition("/")
    if isinstance(content, str):
        content = content.encode("utf-8")
    msg.add_attachment(
        content,
        maintype=maintype,
        subtype=subtype or "octet-stream",
        filename=descriptor["filename"],
    )


def build_email_message(envelope: Envelope) -> EmailMessage:
    """Turn an envelope into an :class:`EmailMessage` ready for ``aiosmtplib``."""
    msg = EmailMessage()
    msg["From"] = _header_address(envelope["from"])
    msg["To"] = ", ".join(_as_list(envelope.get("to")))
    cc = _as_list(envelope.get("cc"))
    if cc:
        msg["Cc"] = ", ".join(cc)
    bcc = _as_list(envelope.get("bcc"))
    if bcc:
        # aiosmtplib strips Bcc from the transmitted headers
        msg["Bcc"] = ", ".join(bcc)
    msg["Subject"] = envelope["subject"]
    msg["Message-Id"] = make_msgid()

    html = envelope.get("html")
    if html:
        msg.set_content(envelope.get("text") or "")
        msg.add_alternative(html, subtype="html")
    else:
        msg.set_content(envelope.get("text") or "")

    for descriptor in envelope.get("attachments") or []:
        _add_attachment(msg, descriptor)
    return msg


class SMTPTransport:
    """Deliver envelopes with one ``aiosmtplib.send`` call per message.

    Connections are opened and closed per send; errors from ``aiosmtplib``
    propagate unchanged.
    """

    def __init__(self, settings: SMTPSettings) -> None:
        self.settings = settings

    async def send_message(self, envelope: Envelope) -> DeliveryReceipt:
        msg = build_email_message(envelope)
        recipients = _as_list(envelope.get("to")) + _as_list(envelope.get("cc")) + _as_list(envelope.get("bcc"))

        logger.debug("Connecting to %s:%s (tls=%s)", self.settings.host, self.settings.port, self.settings.secure)
        response = await aiosmtplib.send(
            msg,
            hostname=self.settings.host,
            port=self.settings.port,
            username=self.settings.user,
            password=self.settings.password,
            use_tls=self.settings.secure,
            start_tls=self.settings.start_tls,
            timeout=self.settings.timeout,
        )
        errors, info = response
        rejected = list(errors) if isinstance(errors, dict) else []
        return {
            "messageId": msg["Message-Id"],
            "accepted": [r for r in recipients if r not in rejected],
            "rejected": rejected,
            "responseInfo": info.decode() if hasattr(info, "decode") else str(info),
        }
