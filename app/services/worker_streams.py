# app/services/worker_streams.py
import asyncio
import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from app.core.backend import Backend, build_backend
from app.core.config import get_settings
from app.services.queue import RedisJobQueue
from app.services.worker import EnhancementWorker, sweep_stale_jobs

logger = logging.getLogger(__name__)

PENDING_CLAIM_BATCH = 10


async def _process_message(worker: EnhancementWorker, message_id: str, data: Dict[str, Any]) -> bool:
    """
    Process single message (fields as dict). Returns True when the message can
    be acknowledged. Job-level failures are recorded on the job by the worker
    and still count as handled; False means the job store itself failed and
    the message should be retried.
    """
    try:
        payload_json = data.get("payload")
        payload = json.loads(payload_json) if payload_json else {}
        job_id = payload.get("job_id")
        if not job_id:
            logger.error("Message %s has no job_id: %r", message_id, data)
            return False
        job = await worker.process_job(job_id)
        logger.info("Message %s handled -> job %s %s", message_id, job_id, job.state.value if job else "skipped")
        return True
    except Exception:
        logger.exception("Unhandled exception while processing message %s", message_id)
        return False


async def _settle(queue: RedisJobQueue, msg_id: str, data: Dict[str, Any], ok: bool, max_retries: int) -> None:
    """Ack a handled message, or count a failure and dead-letter it after max_retries."""
    client = queue.client
    retries_key = f"retries:{msg_id}"
    if ok:
        await client.xack(queue.stream, queue.group, msg_id)
        await client.xdel(queue.stream, msg_id)
        await client.delete(retries_key)
        return

    retries = await client.incr(retries_key)
    await client.expire(retries_key, 60 * 60 * 24)
    logger.warning("Message %s failed (retry %s/%s)", msg_id, retries, max_retries)
    if retries >= max_retries:
        payload_json = data.get("payload")
        try:
            payload_obj = json.loads(payload_json) if payload_json else {}
        except ValueError:
            payload_obj = {"_raw": payload_json}
        await queue.move_to_dlq(msg_id, payload_obj, reason=f"exceeded {max_retries} retries")
        await client.xack(queue.stream, queue.group, msg_id)
        await client.xdel(queue.stream, msg_id)
        await client.delete(retries_key)


async def _handle_pending_claims(
    queue: RedisJobQueue, worker: EnhancementWorker, consumer_name: str, claim_idle_ms: int, max_retries: int
) -> None:
    """
    Claim and reprocess entries that have been pending (delivered, never
    acked) for at least claim_idle_ms, e.g. after a consumer crashed.
    """
    client = queue.client
    pending = await client.xpending_range(queue.stream, queue.group, min="-", max="+", count=PENDING_CLAIM_BATCH)
    for item in pending or []:
        msg_id = item["message_id"]
        if item["time_since_delivered"] < claim_idle_ms:
            continue
        logger.info("Attempting to claim pending msg %s (idle %sms)", msg_id, item["time_since_delivered"])
        claimed = await client.xclaim(queue.stream, queue.group, consumer_name, min_idle_time=claim_idle_ms, message_ids=[msg_id])
        for cid, data in claimed or []:
            if not data:
                # entry was deleted from the stream; just drop it from the PEL
                await client.xack(queue.stream, queue.group, cid)
                continue
            parsed = dict(data)
            ok = await _process_message(worker, cid, parsed)
            await _settle(queue, cid, parsed, ok, max_retries)


async def worker_loop(backend: Backend, consumer_name: Optional[str] = None, max_retries: Optional[int] = None):
    """
    Main worker loop polling Redis Streams via consumer group.
    - Claims pending items older than WORKER_CLAIM_IDLE_MS
    - Reads new entries with XREADGROUP
    - Calls _process_message to handle each entry
    - On failure increments retry counter; if retries >= max_retries moves message to DLQ
    - Every STALE_SWEEP_INTERVAL_SEC fails jobs stuck in processing
    """
    settings = backend.settings
    queue = backend.queue
    if not isinstance(queue, RedisJobQueue):
        raise RuntimeError("worker_loop needs QUEUE_BACKEND=redis")
    worker = backend.worker()
    consumer_name = consumer_name or f"worker-{uuid.uuid4().hex[:8]}"
    max_retries = max_retries or settings.WORKER_MAX_RETRIES
    loop = asyncio.get_running_loop()
    last_sweep = 0.0

    logger.info("Worker '%s' starting and connecting to Redis...", consumer_name)
    await queue.ensure_group_exists()

    while True:
        try:
            if loop.time() - last_sweep >= settings.STALE_SWEEP_INTERVAL_SEC:
                last_sweep = loop.time()
                try:
                    swept = await sweep_stale_jobs(backend.jobs, settings.JOB_STALE_AFTER_SEC)
                    if swept:
                        logger.warning("Failed %s stale processing job(s)", swept)
                except Exception:
                    logger.exception("Error while sweeping stale jobs")

            # handle orphaned pending messages first
            try:
                await _handle_pending_claims(queue, worker, consumer_name, settings.WORKER_CLAIM_IDLE_MS, max_retries)
            except Exception:
                logger.exception("Error while handling pending claims")

            # Blocking read for new messages
            entries: List[Tuple[str, List[Tuple[str, Dict[str, str]]]]] = await queue.client.xreadgroup(
                groupname=queue.group,
                consumername=consumer_name,
                streams={queue.stream: ">"},
                count=1,
                block=settings.WORKER_READ_BLOCK_MS,
            )
            if not entries:
                await asyncio.sleep(0.05)
                continue

            for _stream_name, messages in entries:
                for msg_id, data in messages:
                    parsed = dict(data)
                    ok = await _process_message(worker, msg_id, parsed)
                    await _settle(queue, msg_id, parsed, ok, max_retries)
        except asyncio.CancelledError:
            logger.info("Worker '%s' cancelled, shutting down.", consumer_name)
            break
        except Exception:
            logger.exception("Worker main loop error, sleeping briefly before retrying")
            await asyncio.sleep(1)


async def main(consumer_name: Optional[str] = None, max_retries: Optional[int] = None):
    backend = build_backend(get_settings())
    try:
        await worker_loop(backend, consumer_name=consumer_name, max_retries=max_retries)
    finally:
        await backend.close()


if __name__ == "__main__":
    import sys

    logging.basicConfig(level=get_settings().LOG_LEVEL)

    # Allow optional args: consumer_name and max_retries
    cname = sys.argv[1] if len(sys.argv) >= 2 else None
    m_retries = None
    if len(sys.argv) >= 3:
        try:
            m_retries = int(sys.argv[2])
        except ValueError:
            logger.warning("Ignoring non-integer max_retries %r", sys.argv[2])

    logger.info("Starting worker (consumer=%s, max_retries=%s)...", cname or "auto", m_retries or "default")
    try:
        asyncio.run(main(consumer_name=cname, max_retries=m_retries))
    except KeyboardInterrupt:
        logger.info("Worker interrupted by user; exiting.")
