import pytest

from smtp_mail_builder import SMTPSettings, SMTPTransport
from smtp_mail_builder.transport import build_email_message


def _envelope(**extra):
    envelope = {
        "from": '"Alice" a@x.com',
        "to": ["b@x.com", "c@x.com"],
        "subject": "Hi",
        "cc": None,
        "bcc": None,
    }
    envelope.update(extra)
    return envelope


@pytest.fixture
def sent(monkeypatch):
    calls = []

    async def fake_send(message, **kwargs):
        calls.append((message, kwargs))
        return {}, "2.0.0 OK queued"

    monkeypatch.setattr("smtp_mail_builder.transport.aiosmtplib.send", fake_send)
    return calls


def test_plain_message_headers():
    msg = build_email_message(_envelope(text="hello", cc="d@x.com"))

    assert msg["From"] == "Alice <a@x.com>"
    assert msg["To"] == "b@x.com, c@x.com"
    assert msg["Cc"] == "d@x.com"
    assert msg["Bcc"] is None
    assert msg["Subject"] == "Hi"
    assert msg["Message-Id"]
    assert msg.get_body(("plain",)).get_content().strip() == "hello"
    assert msg.get_body(("html",)) is None


def test_html_message_has_alternative():
    msg = build_email_message(_envelope(html="<p>hello</p>"))

    assert msg.get_content_type() == "multipart/alternative"
    assert "<p>hello</p>" in msg.get_body(("html",)).get_content()


def test_attachments_are_added():
    msg = build_email_message(
        _envelope(
            text="see attached",
            attachments=[
                {"filename": "notes.txt", "content": "payload", "contentType": "text/plain"},
                {"filename": "blob", "content": b"\x00\x01"},
            ],
        )
    )

    attachments = list(msg.iter_attachments())
    assert [a.get_filename() for a in attachments] == ["notes.txt", "blob"]
    assert attachments[0].get_content_type() == "text/plain"
    assert attachments[1].get_content_type() == "application/octet-stream"


@pytest.mark.asyncio
async def test_send_message_uses_settings(sent):
    settings = SMTPSettings(host="smtp.local", port=2525, user="u", password="p", timeout=5)
    receipt = await SMTPTransport(settings).send_message(_envelope(text="hello", bcc=["z@x.com"]))

    message, kwargs = sent[0]
    assert kwargs == {
        "hostname": "smtp.local",
        "port": 2525,
        "username": "u",
        "password": "p",
        "use_tls": False,
        "start_tls": True,
        "timeout": 5,
    }
    assert message["Bcc"] == "z@x.com"
    assert receipt["messageId"] == message["Message-Id"]
    assert receipt["accepted"] == ["b@x.com", "c@x.com", "z@x.com"]
    assert receipt["rejected"] == []
    assert receipt["responseInfo"] == "2.0.0 OK queued"


@pytest.mark.asyncio
async def test_secure_uses_implicit_tls(sent):
    settings = SMTPSettings(host="smtp.local", port=465, secure=True)
    await SMTPTransport(settings).send_message(_envelope(text="hello"))

    _, kwargs = sent[0]
    assert kwargs["use_tls"] is True
    assert kwargs["start_tls"] is False
    assert kwargs["username"] is None


@pytest.mark.asyncio
async def test_rejected_recipients_are_reported(monkeypatch):
    async def fake_send(message, **kwargs):
        return {"c@x.com": (550, "no such user")}, "OK"

    monkeypatch.setattr("smtp_mail_builder.transport.aiosmtplib.send", fake_send)
    receipt = await SMTPTransport(SMTPSettings(host="smtp.local")).send_message(_envelope(text="hello"))

    assert receipt["accepted"] == ["b@x.com"]
    assert receipt["rejected"] == ["c@x.com"]


@pytest.mark.asyncio
async def test_errors_propagate(monkeypatch):
    async def fake_send(message, **kwargs):
        raise ConnectionError("connection refused")

    monkeypatch.setattr("smtp_mail_builder.transport.aiosmtplib.send", fake_send)

    with pytest.raises(ConnectionError, match="refused"):
        await SMTPTransport(SMTPSettings(host="smtp.local")).send_message(_envelope(text="hello"))


def test_display_name_with_quotes_keeps_address():
    msg = build_email_message(_envelope(**{"from": '"Ann "Boss" Lee" a@x.com', "text": "hello"}))

    address = msg["From"].addresses[0]
    assert address.addr_spec == "a@x.com"
    assert address.display_name == 'Ann "Boss" Lee'


def test_plain_sender_is_left_alone():
    msg = build_email_message(_envelope(**{"from": "a@x.com", "text": "hello"}))

    assert msg["From"] == "a@x.com"


@pytest.mark.parametrize(
    "descriptor",
    [
        {"filename": "a", "path": "/tmp/a"},
        {"content": "payload"},
        "notes.txt",
    ],
)
def test_incomplete_attachment_descriptor(descriptor):
    with pytest.raises(ValueError, match="'filename' and 'content'"):
        build_email_message(_envelope(text="hello", attachments=[descriptor]))
