# app/client/poller.py
"""
Client side of the enhancement flow: an httpx API client plus a poller
that checks a job's status on a fixed interval until it reaches a terminal
state or is stopped.

    async with ResumeEnhancerClient(base_url, token) as client:
        upload = await client.upload_resume(Path("resume.pdf"))
        status = await enhance_and_wait(client, upload.file_url, upload.file_name)
"""
import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

import httpx

from app.models.enhancement import EnqueueResponse, JobState, StatusResponse, UploadResponse

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0


class ApiError(Exception):
    """Non-2xx response from the API, carrying its error code."""

    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")

    @classmethod
    def from_response(cls, resp: httpx.Response) -> "ApiError":
        code, message = "internal", resp.text
        try:
            detail = resp.json().get("detail")
        except ValueError:
            detail = None
        if isinstance(detail, dict):
            code = detail.get("code", code)
            message = detail.get("message", message)
        elif isinstance(detail, str):
            message = detail
        return cls(resp.status_code, code, message)


class PollingError(Exception):
    """A status check failed; polling has stopped."""


class ResumeEnhancerClient:
    def __init__(self, base_url: str, token: str, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 30):
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {token}"}

    async def __aenter__(self) -> "ResumeEnhancerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _post(self, path: str, **kwargs) -> dict:
        resp = await self._http.post(path, headers=self._headers, **kwargs)
        if resp.status_code >= 400:
            raise ApiError.from_response(resp)
        return resp.json()

    async def upload_resume(self, path: Path) -> UploadResponse:
        files = {"file": (path.name, path.read_bytes(), "application/pdf")}
        return UploadResponse.model_validate(await self._post("/api/v1/upload-resume", files=files))

    async def enhance_resume(self, file_url: str, file_name: str) -> EnqueueResponse:
        body = {"fileUrl": file_url, "fileName": file_name}
        return EnqueueResponse.model_validate(await self._post("/api/v1/enhance-resume", json=body))

    async def check_status(self, queue_id: str) -> StatusResponse:
        data = await self._post("/api/v1/check-resume-status", json={"queueId": queue_id})
        return StatusResponse.model_validate(data)


def _is_done(status: StatusResponse) -> bool:
    # a completed job without a result is treated as still settling
    if status.status == JobState.COMPLETED:
        return bool(status.enhanced_resume)
    return status.status == JobState.ERROR


class StatusPoller:
    """
    Polls check_status every `interval` seconds on a single asyncio task.
    No backoff and no attempt limit: it runs until a terminal state, a
    failed check, or stop().
    """

    def __init__(
        self,
        client: ResumeEnhancerClient,
        interval: float = DEFAULT_POLL_INTERVAL,
        on_status: Optional[Callable[[StatusResponse], None]] = None,
    ):
        self.client = client
        self.interval = interval
        self.on_status = on_status
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, queue_id: str) -> asyncio.Task:
        if self.running:
            raise RuntimeError("poller already running")
        self._task = asyncio.create_task(self._run(queue_id))
        return self._task

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> StatusResponse:
        if self._task is None:
            raise RuntimeError("poller was never started")
        return await self._task

    async def _run(self, queue_id: str) -> StatusResponse:
        while True:
            await asyncio.sleep(self.interval)
            try:
                status = await self.client.check_status(queue_id)
            except Exception as exc:
                logger.error("Error checking status of %s: %s", queue_id, exc)
                raise PollingError(f"Failed to check enhancement status: {exc}") from exc
            logger.debug("Current status of %s: %s", queue_id, status.status.value)
            if self.on_status is not None:
                self.on_status(status)
            if _is_done(status):
                return status


async def enhance_and_wait(
    client: ResumeEnhancerClient,
    file_url: str,
    file_name: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    on_status: Optional[Callable[[StatusResponse], None]] = None,
) -> StatusResponse:
    queued = await client.enhance_resume(file_url, file_name)
    poller = StatusPoller(client, interval=interval, on_status=on_status)
    poller.start(queued.queue_id)
    try:
        return await poller.wait()
    finally:
        poller.stop()
