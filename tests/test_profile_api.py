# tests/test_profile_api.py
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.mark.asyncio
async def test_profile_setup_creates_profile(client, backend, auth_headers):
    resp = await client.put(
        "/api/v1/profile",
        json={"fullName": "Jane Doe", "username": "jane", "skills": "python, sql ,,fastapi", "profilePicture": ""},
        headers=auth_headers("u1"),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == "u1"
    assert body["fullName"] == "Jane Doe"
    assert body["skills"] == ["python", "sql", "fastapi"]

    stored = await backend.profiles.get("u1")
    assert stored["username"] == "jane"
    assert "createdAt" in stored


@pytest.mark.asyncio
async def test_update_keeps_other_fields(client, backend, auth_headers):
    await backend.profiles.record_resume_upload("u1", "s3://resumes/resumes/u1/a.pdf", "a.pdf")
    resp = await client.put(
        "/api/v1/profile",
        json={
            "careerInterests": {"jobTypes": ["Full-time"], "workTypes": ["Remote"], "locations": "Berlin"},
            "links": {"linkedin": "https://linkedin.com/in/jane"},
        },
        headers=auth_headers("u1"),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["careerInterests"] == {"jobTypes": ["Full-time"], "workTypes": ["Remote"], "locations": "Berlin"}
    assert body["links"] == {"linkedin": "https://linkedin.com/in/jane"}
    assert body["resumeFileName"] == "a.pdf"


@pytest.mark.asyncio
async def test_server_written_fields_are_refused(client, backend, auth_headers):
    resp = await client.put("/api/v1/profile", json={"enhancedResume": "forged"}, headers=auth_headers("u1"))
    assert resp.status_code == 422
    assert await backend.profiles.get("u1") is None


@pytest.mark.asyncio
async def test_empty_update_rejected(client, auth_headers):
    resp = await client.put("/api/v1/profile", json={}, headers=auth_headers("u1"))
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "invalid-argument"


@pytest.mark.asyncio
async def test_profile_update_requires_authentication(client):
    resp = await client.put("/api/v1/profile", json={"fullName": "x"})
    assert resp.status_code == 401
