"""Async Ollama client — turns a raw search query into a validated ParsedQuery."""

import asyncio
import json
import logging
import re
import time
from typing import Any

import httpx

from safekids.config import Settings, settings
from safekids.search.errors import (
    ModelOutputError,
    ModelStatusError,
    ModelTimeoutError,
    ModelUnavailableError,
)
from safekids.search.prompts import build_prompt
from safekids.search.schemas import ParsedQuery
from safekids.search.validation import validate_parsed_query

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class OllamaClient:
    """One-shot, non-streaming calls to {base_url}/api/generate."""

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        username: str = "",
        password: str = "",
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.auth = httpx.BasicAuth(username, password) if username and password else None

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "OllamaClient":
        return cls(
            base_url=cfg.ollama_base_url,
            model=cfg.ollama_model,
            timeout=cfg.ai_timeout_seconds,
            username=cfg.ollama_username,
            password=cfg.ollama_password,
        )

    async def parse_query(self, query: str) -> ParsedQuery:
        """Ask the model for structured search intent. Single attempt, no retry."""
        text = await self.generate(build_prompt(query))
        return validate_parsed_query(decode_model_output(text))

    async def generate(self, prompt: str) -> str:
        """POST the prompt and return the model's raw `response` text."""
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
        }
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, auth=self.auth) as client:
                resp = await asyncio.wait_for(
                    client.post(f"{self.base_url}/api/generate", json=payload),
                    timeout=self.timeout,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning(
                "LLM timeout | model=%s | %dms (hard limit %ss)",
                self.model, elapsed_ms, self.timeout,
            )
            raise ModelTimeoutError(f"LLM timeout after {elapsed_ms}ms")
        except httpx.HTTPError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("LLM connection error | model=%s | %dms | %s", self.model, elapsed_ms, str(e)[:200])
            raise ModelUnavailableError(f"LLM endpoint unreachable: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if not resp.is_success:
            logger.warning("LLM error | model=%s | status=%d | %dms", self.model, resp.status_code, elapsed_ms)
            raise ModelStatusError(resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise ModelOutputError("LLM envelope is not JSON") from e

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise ModelOutputError("LLM envelope has no 'response' text")

        logger.info("LLM OK | model=%s | chars=%d | %dms", self.model, len(text), elapsed_ms)
        return text


def extract_json_text(text: str) -> str:
    """Interior of a ``` / ```json fence if present, else the trimmed text."""
    trimmed = text.strip()
    fence = _FENCE_RE.search(trimmed)
    if fence:
        return fence.group(1).strip()
    return trimmed


def decode_model_output(text: str) -> Any:
    """Parse the model's text as JSON; any decode failure is a ModelOutputError."""
    try:
        return json.loads(extract_json_text(text))
    except json.JSONDecodeError as e:
        raise ModelOutputError(f"LLM output is not valid JSON: {e.msg}") from e
