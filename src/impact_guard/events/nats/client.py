"""
Async NATS and JetStream clients for JSON messages.

Every operation is a coroutine (prefixed with 'a'). A connection is bound
to the event loop it was opened in, so connect, publish and close must all
run on that same loop.
"""

import logging
from typing import Any, Dict, List, Optional

import nats
from nats.aio.client import Client as NATS
from nats.js.client import JetStreamContext
from nats.js.errors import NotFoundError

from .json_helpers import dumps

logger = logging.getLogger(__name__)

CLIENT_NAME = "impact-guard"


class NatsClient:
    """Core NATS client publishing JSON-encoded messages."""

    def __init__(self, url: str = "nats://localhost:4222"):
        self.url = url
        self.nc: Optional[NATS] = None

    @property
    def is_connected(self) -> bool:
        return self.nc is not None and self.nc.is_connected

    async def aconnect(self):
        logger.info(f"Connecting to NATS at {self.url}")
        self.nc = await nats.connect(servers=[self.url], name=CLIENT_NAME)
        logger.info(f"Connected to NATS at {self.url}")

    async def aclose(self):
        """Drain pending messages and close the connection."""
        if self.nc:
            await self.nc.drain()
            self.nc = None

    async def apublish(self, subject: str, msg: Any, msg_id: Optional[str] = None):
        if not self.nc:
            raise ConnectionError("Not connected to NATS server")
        await self.nc.publish(subject, dumps(msg).encode())


class NatsClientJS(NatsClient):
    """
    JetStream client: messages are persisted in a stream and acknowledged.

    A message id, when given, is sent as Nats-Msg-Id so the server drops
    duplicates inside the stream's deduplication window.
    """

    def __init__(self, url: str = "nats://localhost:4222"):
        super().__init__(url)
        self.js: Optional[JetStreamContext] = None

    async def aconnect(self):
        await super().aconnect()
        self.js = self.nc.jetstream()

    async def _stream_subjects(self, stream_name: str) -> Optional[List[str]]:
        """Subjects bound to a stream, None if the stream does not exist."""
        try:
            info = await self.js.stream_info(stream_name)
        except NotFoundError:
            return None
        return list(info.config.subjects or [])

    async def aensure_stream(self, stream_name: str, subjects: List[str]):
        """Create the stream, or add any subjects it does not cover yet."""
        if not self.js:
            raise ConnectionError("JetStream not initialized")
        existing = await self._stream_subjects(stream_name)
        if existing is None:
            await self.js.add_stream(name=stream_name, subjects=subjects)
            logger.info(f"Created stream {stream_name} with subjects: {subjects}")
            return
        missing = [s for s in subjects if s not in existing]
        if missing:
            await self.js.update_stream(name=stream_name, subjects=existing + missing)
            logger.info(f"Added subjects {missing} to stream {stream_name}")

    async def apublish(self, subject: str, msg: Any, msg_id: Optional[str] = None):
        if not self.js:
            raise ConnectionError("JetStream not initialized")
        headers: Optional[Dict[str, str]] = {"Nats-Msg-Id": msg_id} if msg_id else None
        await self.js.publish(subject, dumps(msg).encode(), headers=headers)
