# tests/conftest.py
import pytest
from unittest.mock import AsyncMock

from app.core.backend import Backend
from app.core.config import Settings
from app.core.errors import UpstreamServiceError
from app.main import create_app
from app.repositories.applications import InMemoryApplicationRepository
from app.repositories.enhancement_jobs import InMemoryJobRepository
from app.repositories.profiles import InMemoryProfileRepository
from app.services.auth import create_access_token
from app.services.llm_adapter import ResumeEnhancer
from app.services.llm_adapters.mock_adapter import MockEnhancementAdapter
from app.services.retry import RetryPolicy, linear_backoff
from app.services.storage import ObjectStorage

TEST_SECRET = "test-secret"
BUCKET = "resumes"


class ScriptedAdapter:
    """LLM adapter that replays outcomes in order (the last one repeats)."""
    name = "scripted"

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def complete(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        JOB_STORE="memory",
        QUEUE_BACKEND="inline",
        LLM_ADAPTER="mock",
        SECRET_KEY=TEST_SECRET,
        S3_BUCKET=BUCKET,
        LOCAL_UPLOAD_DIR=str(tmp_path / "uploads"),
        TEMP_DIR=str(tmp_path / "tmp"),
    )


@pytest.fixture
def sleeps():
    """Delays requested by the retry policy, instead of really sleeping."""
    return []


@pytest.fixture
def make_enhancer(sleeps):
    async def fake_sleep(seconds):
        sleeps.append(seconds)

    def _make(adapter):
        policy = RetryPolicy(
            max_attempts=3,
            backoff=linear_backoff(1000),
            retry_on=(UpstreamServiceError,),
            sleep=fake_sleep,
        )
        return ResumeEnhancer(adapter, retry_policy=policy)
    return _make


@pytest.fixture
def storage(tmp_path):
    return ObjectStorage(BUCKET, client=None, local_dir=tmp_path / "uploads")


@pytest.fixture
def backend(settings, storage):
    return Backend(
        settings=settings,
        jobs=InMemoryJobRepository(),
        profiles=InMemoryProfileRepository(),
        storage=storage,
        queue=AsyncMock(),
        enhancer=ResumeEnhancer(MockEnhancementAdapter()),
        applications=InMemoryApplicationRepository(),
    )


@pytest.fixture
def app(backend):
    return create_app(backend)


@pytest.fixture
def auth_headers():
    def _headers(user_id):
        return {"Authorization": f"Bearer {create_access_token(user_id, TEST_SECRET)}"}
    return _headers


@pytest.fixture
def put_object(tmp_path):
    """Place a file in the local object store under `key`."""
    def _put(key, data):
        path = tmp_path / "uploads" / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path
    return _put
