"""
MCP server over stdio exposing a ``send_email`` tool backed by MessageBuilder.
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# MCP Python SDK (low-level stdio server)
import mcp.server.stdio
import mcp.types as types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .builder import MessageBuilder
from .config import SMTPSettings
from .errors import DeliveryFailed, InvalidMessage, TransportInitFailed
from .logger import get_logger
from .transport import SMTPTransport, Transport

logger = get_logger(__name__)

server = Server("email-mcp-server")

_transport: Optional[Transport] = None
_default_sender: Optional[str] = None


@dataclass
class InlineSource:
    """Content source wrapping an HTML body passed in a tool call."""

    body: str
    sender: Optional[str] = None
    subject: Optional[str] = None

    async def render_contents(self) -> str:
        return self.body


def configure(transport: Optional[Transport], default_sender: Optional[str]) -> None:
    """Set the transport and sender shared by every tool call."""
    global _transport, _default_sender
    _transport = transport
    _default_sender = default_sender


def _string_list(arguments: Dict[str, Any], key: str) -> Optional[List[str]]:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return value


async def send_email(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Build and send one message from tool arguments, returning a JSON-able result."""
    if _transport is None:
        raise RuntimeError("Server transport is not configured")

    to = _string_list(arguments, "to") or []
    subject = arguments.get("subject") or ""
    body = arguments.get("body") or ""

    builder = MessageBuilder(transport=_transport).set_recipients(to).set_subject(subject)
    cc = _string_list(arguments, "cc")
    if cc:
        builder.set_cc(cc)
    bcc = _string_list(arguments, "bcc")
    if bcc:
        builder.set_bcc(bcc)
    if _default_sender:
        builder.set_sender(_default_sender)

    try:
        if arguments.get("html"):
            await builder.send_from_source(InlineSource(body))
        else:
            await builder.send_raw(body)
    except InvalidMessage as e:
        return {"error": str(e), "reason": e.reason.value}
    except DeliveryFailed as e:
        return {"error": str(e.cause), "rejected": to}
    return dict(builder.last_receipt or {})


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """Advertise available tools to the client."""
    address_list = {"type": "array", "items": {"type": "string"}}
    return [
        types.Tool(
            name="send_email",
            description="Send an email to one or more recipients",
            inputSchema={
                "type": "object",
                "properties": {
                    "to": {**address_list, "description": "List of recipient email addresses"},
                    "cc": {**address_list, "description": "List of Cc addresses"},
                    "bcc": {**address_list, "description": "List of Bcc addresses"},
                    "subject": {"type": "string", "description": "Email subject"},
                    "body": {"type": "string", "description": "Email body content"},
                    "html": {"type": "boolean", "description": "Send the body as text/html"},
                },
                "required": ["to", "subject", "body"],
            },
        )
    ]


@server.call_tool()
async def handle_call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
    """Handle tool invocations from the client."""
    if name != "send_email":
        raise ValueError(f"Unknown tool: {name}")

    result = await send_email(arguments)
    return [types.TextContent(type="text", text=json.dumps(result))]


async def _run() -> None:
    """Run the MCP server over stdio."""
    try:
        settings = SMTPSettings.from_env()
    except ValueError as e:
        raise TransportInitFailed(f"Invalid SMTP settings: {e}", cause=e) from e
    configure(SMTPTransport(settings), settings.default_sender)
    logger.info("Serving send_email via %s:%s", settings.host, settings.port)

    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name="Email MCP Server",
                server_version="1.0.0",
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )
