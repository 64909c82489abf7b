# tests/test_enhancements_api.py
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock
from httpx import AsyncClient, ASGITransport

from app.core.errors import QueueError
from app.models.enhancement import JobState


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.mark.asyncio
async def test_enhance_requires_authentication(client, backend):
    resp = await client.post("/api/v1/enhance-resume", json={"fileUrl": "s3://resumes/a.pdf", "fileName": "a.pdf"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == {
        "code": "unauthenticated",
        "message": "The function must be called while authenticated.",
    }
    assert backend.jobs._docs == {}
    backend.queue.publish_created.assert_not_awaited()


@pytest.mark.asyncio
async def test_bad_token_is_rejected(client):
    headers = {"Authorization": "Bearer not-a-jwt"}
    resp = await client.post("/api/v1/check-resume-status", json={"queueId": "x"}, headers=headers)
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "unauthenticated"


@pytest.mark.asyncio
async def test_enhance_creates_pending_job_and_publishes(client, backend, auth_headers):
    resp = await client.post(
        "/api/v1/enhance-resume",
        json={"fileUrl": "s3://resumes/resumes/u1/a.pdf", "fileName": "a.pdf"},
        headers=auth_headers("u1"),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Resume enhancement process started"

    job = await backend.jobs.get(body["queueId"])
    assert job.state == JobState.PENDING
    assert job.owner_id == "u1"
    assert job.file_reference == "s3://resumes/resumes/u1/a.pdf"
    assert job.file_name == "a.pdf"
    backend.queue.publish_created.assert_awaited_once_with(job.id)


@pytest.mark.asyncio
async def test_each_request_is_a_new_job(client, backend, auth_headers):
    body = {"fileUrl": "s3://resumes/a.pdf", "fileName": "a.pdf"}
    first = await client.post("/api/v1/enhance-resume", json=body, headers=auth_headers("u1"))
    second = await client.post("/api/v1/enhance-resume", json=body, headers=auth_headers("u1"))
    assert first.json()["queueId"] != second.json()["queueId"]
    assert len(backend.jobs._docs) == 2


@pytest.mark.asyncio
async def test_publish_failure_fails_job(client, backend, auth_headers):
    backend.queue.publish_created = AsyncMock(side_effect=QueueError("redis down"))
    resp = await client.post(
        "/api/v1/enhance-resume",
        json={"fileUrl": "s3://resumes/a.pdf", "fileName": "a.pdf"},
        headers=auth_headers("u1"),
    )
    assert resp.status_code == 500
    assert resp.json()["detail"]["code"] == "internal"

    [doc] = backend.jobs._docs.values()
    assert doc["status"] == "error"
    assert doc["error"] == "Failed to schedule resume enhancement"


@pytest.mark.asyncio
async def test_status_of_unknown_job(client, auth_headers):
    resp = await client.post("/api/v1/check-resume-status", json={"queueId": "nope"}, headers=auth_headers("u1"))
    assert resp.status_code == 404
    assert resp.json()["detail"] == {"code": "not-found", "message": "Resume enhancement process not found"}


@pytest.mark.asyncio
async def test_status_is_owner_only_in_every_state(client, backend, auth_headers):
    jobs = backend.jobs
    pending = await jobs.create("owner", "s3://resumes/a.pdf", "a.pdf")
    processing = await jobs.create("owner", "s3://resumes/b.pdf", "b.pdf")
    await jobs.mark_processing(processing.id)
    completed = await jobs.create("owner", "s3://resumes/c.pdf", "c.pdf")
    await jobs.mark_processing(completed.id)
    await jobs.mark_completed(completed.id, "Enhanced")
    errored = await jobs.create("owner", "s3://resumes/d.pdf", "d.pdf")
    await jobs.mark_error(errored.id, "boom")

    for job in (pending, processing, completed, errored):
        resp = await client.post(
            "/api/v1/check-resume-status", json={"queueId": job.id}, headers=auth_headers("intruder")
        )
        assert resp.status_code == 403
        detail = resp.json()["detail"]
        assert detail["code"] == "permission-denied"
        assert detail["message"] == "Not authorized to check this resume enhancement status"
        assert "Enhanced" not in resp.text


@pytest.mark.asyncio
async def test_status_flow_for_owner(client, backend, auth_headers):
    jobs = backend.jobs
    job = await jobs.create("u1", "s3://resumes/a.pdf", "a.pdf")

    resp = await client.post("/api/v1/check-resume-status", json={"queueId": job.id}, headers=auth_headers("u1"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "pending"
    assert body["enhancedResume"] is None
    assert body["error"] is None
    assert body["createdAt"] is not None

    await jobs.mark_processing(job.id)
    await jobs.mark_completed(job.id, "Enhanced: resume")

    resp = await client.post("/api/v1/check-resume-status", json={"queueId": job.id}, headers=auth_headers("u1"))
    body = resp.json()
    assert body["status"] == "completed"
    assert body["enhancedResume"] == "Enhanced: resume"
    assert body["completionTime"] is not None


@pytest.mark.asyncio
async def test_status_reports_error_message(client, backend, auth_headers):
    job = await backend.jobs.create("u1", "bad", "a.pdf")
    await backend.jobs.mark_error(job.id, "Invalid file URL format")

    resp = await client.get(f"/api/v1/enhancements/{job.id}", headers=auth_headers("u1"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "error"
    assert body["error"] == "Invalid file URL format"
    assert body["enhancedResume"] is None


@pytest.mark.asyncio
async def test_store_failure_on_status_is_internal(client, backend, auth_headers, monkeypatch):
    monkeypatch.setattr(backend.jobs, "get", AsyncMock(side_effect=RuntimeError("db down")))
    resp = await client.get("/api/v1/enhancements/abc", headers=auth_headers("u1"))
    assert resp.status_code == 500
    assert resp.json()["detail"]["code"] == "internal"


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}
