"""WebSocket hub: client bookkeeping, message handling and the connection handler."""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from typing import Any

from aiohttp import WSMsgType, web

from blockmark.models import WebSocketResponse, websocket_message_from_dict
from blockmark.parser import MarkdownParser

logger = logging.getLogger(__name__)

MAX_MESSAGE_SIZE = 512 * 1024
PONG_WAIT_SECONDS = 60
PING_PERIOD_SECONDS = PONG_WAIT_SECONDS * 9 / 10
SEND_QUEUE_SIZE = 256

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _marshal(response: WebSocketResponse) -> bytes:
    """Encode a response as compact JSON with HTML-sensitive characters escaped."""
    text = json.dumps(response.to_dict(), separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text.encode("utf-8")


class Client:
    """One connected peer: a bounded outgoing queue and its document subscriptions."""

    def __init__(
        self,
        hub: Hub | None = None,
        connection: web.WebSocketResponse | None = None,
        max_queue: int = SEND_QUEUE_SIZE,
    ) -> None:
        self.hub = hub
        self.connection = connection
        self.subscribed_documents: set[str] = set()
        self.closed = False
        self._max_queue = max_queue
        self._queue: deque[bytes] = deque()
        self._ready = asyncio.Event()

    def enqueue(self, data: bytes) -> bool:
        """Queue ``data`` for sending; return False if closed or the queue is full."""
        if self.closed or len(self._queue) >= self._max_queue:
            return False
        self._queue.append(data)
        self._ready.set()
        return True

    def close(self) -> None:
        """Stop accepting messages; already queued ones are still delivered."""
        self.closed = True
        self._ready.set()

    def pending(self) -> list[bytes]:
        """Remove and return every queued message without waiting."""
        messages = list(self._queue)
        self._queue.clear()
        return messages

    async def next_batch(self) -> bytes | None:
        """Wait for queued messages and return them joined by newlines.

        Returns None once the client is closed and its queue is empty.
        """
        while True:
            if self._queue:
                batch = b"\n".join(self._queue)
                self._queue.clear()
                return batch
            if self.closed:
                return None
            self._ready.clear()
            await self._ready.wait()


class Hub:
    """Keeps track of connected clients and answers their messages."""

    def __init__(self, parser: MarkdownParser | None = None) -> None:
        self.clients: set[Client] = set()
        self.parser = parser or MarkdownParser()

    def register(self, client: Client) -> None:
        """Add ``client`` and send it a connection confirmation."""
        self.clients.add(client)
        logger.info("Client connected. Total clients: %d", len(self.clients))
        data = _marshal(WebSocketResponse(type="connected", success=True))
        if not client.enqueue(data):
            self._drop(client)

    def unregister(self, client: Client) -> None:
        """Remove ``client`` and close its queue, if it is registered."""
        if client in self.clients:
            self.clients.discard(client)
            client.close()
            logger.info("Client disconnected. Total clients: %d", len(self.clients))

    def broadcast(self, data: bytes) -> None:
        """Send ``data`` to every client, dropping those that cannot keep up."""
        for client in list(self.clients):
            if not client.enqueue(data):
                self._drop(client)

    def handle_message(self, client: Client, message_data: bytes | str) -> None:
        """Decode a client message and dispatch it by type."""
        try:
            message = websocket_message_from_dict(json.loads(message_data))
        except ValueError as exc:
            self._send_error(client, f"Invalid message format: {exc}")
            return

        handlers = {
            "parse": self._handle_parse,
            "parse_incremental": self._handle_parse_incremental,
            "subscribe": self._handle_subscribe,
            "unsubscribe": self._handle_unsubscribe,
        }
        handler = handlers.get(message.type)
        if handler is None:
            self._send_error(client, f"Unknown message type: {message.type}")
            return
        handler(client, message)

    def _handle_parse(self, client: Client, message: Any) -> None:
        if not message.content:
            self._send_error(client, "Content is required for parsing")
            return
        try:
            result = self.parser.parse(message.content)
        except Exception as exc:  # any parser failure is reported to the peer
            self._send_error(client, f"Failed to parse markdown: {exc}")
            return
        self._send(client, WebSocketResponse(type="parsed", success=True, data=result))

    def _handle_parse_incremental(self, client: Client, message: Any) -> None:
        if not message.content:
            self._send_error(client, "Content is required for incremental parsing")
            return
        try:
            result = self.parser.parse_incremental(message.content, message.block_id)
        except Exception as exc:  # any parser failure is reported to the peer
            self._send_error(client, f"Failed to parse markdown incrementally: {exc}")
            return
        response = WebSocketResponse(type="parsed_incremental", success=True, data=result)
        self._send(client, response)
        if message.document_id:
            self._broadcast_to_document(message.document_id, response)

    def _handle_subscribe(self, client: Client, message: Any) -> None:
        if not message.document_id:
            self._send_error(client, "Document ID is required for subscription")
            return
        client.subscribed_documents.add(message.document_id)
        self._send(
            client,
            WebSocketResponse(
                type="subscribed",
                success=True,
                data={"documentId": message.document_id},
            ),
        )

    def _handle_unsubscribe(self, client: Client, message: Any) -> None:
        if not message.document_id:
            self._send_error(client, "Document ID is required for unsubscription")
            return
        client.subscribed_documents.discard(message.document_id)
        self._send(
            client,
            WebSocketResponse(
                type="unsubscribed",
                success=True,
                data={"documentId": message.document_id},
            ),
        )

    def _send_error(self, client: Client, error: str) -> None:
        self._send(client, WebSocketResponse(type="error", success=False, error=error))

    def _send(self, client: Client, response: WebSocketResponse) -> None:
        if not client.enqueue(_marshal(response)):
            self._drop(client)

    def _broadcast_to_document(self, document_id: str, response: WebSocketResponse) -> None:
        data = _marshal(response)
        for client in list(self.clients):
            if document_id in client.subscribed_documents and not client.enqueue(data):
                self._drop(client)

    def _drop(self, client: Client) -> None:
        client.close()
        self.clients.discard(client)


async def _write_pump(client: Client, ws: web.WebSocketResponse) -> None:
    try:
        while True:
            batch = await client.next_batch()
            if batch is None:
                await ws.close()
                return
            await ws.send_str(batch.decode("utf-8"))
    except (ConnectionError, RuntimeError) as exc:
        logger.debug("WebSocket write stopped: %s", exc)


async def handle_websocket(hub: Hub, request: web.Request) -> web.WebSocketResponse:
    """Upgrade ``request`` to a WebSocket and serve it until it closes."""
    ws = web.WebSocketResponse(max_msg_size=MAX_MESSAGE_SIZE, heartbeat=PING_PERIOD_SECONDS)
    try:
        await ws.prepare(request)
    except web.HTTPException as exc:
        logger.warning("WebSocket upgrade failed: %s", exc)
        raise

    client = Client(hub, ws)
    hub.register(client)
    writer = asyncio.create_task(_write_pump(client, ws))
    try:
        async for message in ws:
            if message.type in (WSMsgType.TEXT, WSMsgType.BINARY):
                hub.handle_message(client, message.data)
            elif message.type == WSMsgType.ERROR:
                logger.warning("WebSocket error: %s", ws.exception())
                break
    finally:
        hub.unregister(client)
        client.close()
        await writer
    return ws