# app/services/llm_adapter.py
"""
Pluggable LLM adapter loader and the resume enhancement facade.

Settings:
- LLM_ADAPTER: "http" (default) or "mock", or a dotted module path exposing
  `build_adapter(settings)`
- LLM_MAX_ATTEMPTS / LLM_BACKOFF_MS: retry policy for the enhancement call

Public:
- load_adapter(name, settings)
- ResumeEnhancer.enhance(resume_text) -> str
"""

import importlib
import logging
from typing import Optional

from app.core.config import Settings
from app.core.errors import UpstreamServiceError
from app.services.retry import RetryPolicy, linear_backoff

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional resume enhancer. Analyze the resume and provide specific "
    "improvements to make it more attractive to employers."
)
USER_PROMPT_PREFIX = "Enhance this resume. "


def load_adapter(name: str, settings: Settings):
    if name == "mock":
        mod = importlib.import_module("app.services.llm_adapters.mock_adapter")
        return mod.MockEnhancementAdapter()
    if name == "http":
        mod = importlib.import_module("app.services.llm_adapters.http_adapter")
        return mod.HttpEnhancementAdapter.from_settings(settings)
    # try dynamic import
    mod = importlib.import_module(name)
    if not hasattr(mod, "build_adapter"):
        raise RuntimeError(f"Adapter {name} does not expose build_adapter()")
    return mod.build_adapter(settings)


class ResumeEnhancer:
    """Submits resume text to the enhancement service under a retry policy."""

    def __init__(self, adapter, retry_policy: Optional[RetryPolicy] = None):
        self.adapter = adapter
        self.retry_policy = retry_policy or RetryPolicy(retry_on=(UpstreamServiceError,))

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResumeEnhancer":
        policy = RetryPolicy(
            max_attempts=settings.LLM_MAX_ATTEMPTS,
            backoff=linear_backoff(settings.LLM_BACKOFF_MS),
            retry_on=(UpstreamServiceError,),
        )
        return cls(load_adapter(settings.LLM_ADAPTER, settings), retry_policy=policy)

    async def enhance(self, resume_text: str) -> str:
        user_prompt = f"{USER_PROMPT_PREFIX}{resume_text}"

        async def _attempt() -> str:
            return await self.adapter.complete(SYSTEM_PROMPT, user_prompt)

        return await self.retry_policy.run(_attempt, label=f"{self.adapter.name} enhancement")
