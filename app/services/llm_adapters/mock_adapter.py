# app/services/llm_adapters/mock_adapter.py
"""
Deterministic mock adapter for local development and CI.
Same input always yields the same output.
"""

import asyncio
import hashlib


class MockEnhancementAdapter:
    name = "mock"

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        await asyncio.sleep(0)  # keep async signature
        h = hashlib.sha256(f"{system_prompt}|{user_prompt}".encode("utf-8")).hexdigest()[:8]
        # strip the instruction prefix so the echo shows the resume text
        text = user_prompt.split(". ", 1)[-1].strip()
        lines = [l.strip() for l in text.splitlines() if l.strip()][:5]
        bullets = "\n".join(f"- Quantify the impact of: {l[:80]}" for l in lines) or "- Add measurable achievements"
        return f"Enhanced ({h}):\n{bullets}"
