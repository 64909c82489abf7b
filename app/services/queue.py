# app/services/queue.py
"""
Job creation events.

Creating an enhancement job publishes `{"job_id": ...}` to a Redis Stream;
the worker consumer group (app.services.worker_streams) picks it up. Stream
delivery is at-least-once, and the worker's pending->processing guard absorbs
duplicates.
"""
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

import redis.asyncio as aioredis

from app.core.errors import QueueError

logger = logging.getLogger(__name__)

STREAM_KEY = "enhance:stream"
GROUP_NAME = "enhance:workers"
DLQ_KEY = "enhance:dlq"


class RedisJobQueue:
    def __init__(self, client: aioredis.Redis, stream: str = STREAM_KEY, group: str = GROUP_NAME, dlq: str = DLQ_KEY):
        self.client = client
        self.stream = stream
        self.group = group
        self.dlq = dlq

    @classmethod
    def from_url(cls, url: str) -> "RedisJobQueue":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def ensure_group_exists(self):
        # create stream & group if not exist. XGROUP CREATE <stream> <group> 0 MKSTREAM
        try:
            await self.client.xgroup_create(name=self.stream, groupname=self.group, id="0", mkstream=True)
        except Exception as exc:
            # If group exists, Redis raises BUSYGROUP; ignore
            if "BUSYGROUP" in str(exc).upper():
                return
            raise

    async def publish_created(self, job_id: str) -> str:
        """XADD a creation event for `job_id`. Returns the stream id."""
        entry = {"payload": json.dumps({"job_id": job_id})}
        try:
            sid = await self.client.xadd(self.stream, entry)
        except Exception as exc:
            raise QueueError(f"Failed to publish creation event for job {job_id}: {exc}") from exc
        return str(sid)

    async def move_to_dlq(self, stream_id: str, payload: Dict[str, Any], reason: str):
        entry = {
            "original_id": stream_id,
            "payload": json.dumps(payload, ensure_ascii=False),
            "reason": reason,
        }
        return await self.client.xadd(self.dlq, entry)

    async def close(self):
        await self.client.aclose()


class InlineJobQueue:
    """
    In-process trigger for single-process development: each published job
    is handed to the bound handler as an asyncio task.
    """

    def __init__(self):
        self._handler: Optional[Callable[[str], Awaitable[Any]]] = None
        self._tasks: Set[asyncio.Task] = set()

    def bind(self, handler: Callable[[str], Awaitable[Any]]) -> None:
        self._handler = handler

    async def publish_created(self, job_id: str) -> str:
        if self._handler is None:
            raise QueueError("Inline queue has no worker bound")
        task = asyncio.create_task(self._handler(job_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return job_id

    async def drain(self) -> None:
        """Wait for every scheduled job to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self):
        await self.drain()
