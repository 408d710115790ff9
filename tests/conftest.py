from typing import Any, Dict, List, Optional

import pytest

from smtp_mail_builder import MessageBuilder


class FakeTransport:
    """In-memory transport recording every envelope it is given."""

    def __init__(self, receipt: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.sent: List[Dict[str, Any]] = []
        self.receipt = receipt if receipt is not None else {"messageId": "<1@test>", "accepted": [], "rejected": []}
        self.error = error

    async def send_message(self, envelope):
        if self.error is not None:
            raise self.error
        self.sent.append(dict(envelope))
        return self.receipt


class FakeSource:
    def __init__(self, sender="noreply@x.com", subject="Welcome", body="<p>Hi</p>"):
        self.sender = sender
        self.subject = subject
        self.body = body
        self.rendered = 0

    async def render_contents(self):
        self.rendered += 1
        return self.body


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def builder(transport):
    return MessageBuilder(transport=transport)


@pytest.fixture
def source():
    return FakeSource()
