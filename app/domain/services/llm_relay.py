# app/domain/services/llm_relay.py

from __future__ import annotations
from contextlib import AsyncExitStack
from enum import Enum
from typing import AsyncIterator, Dict, List, Optional, Sequence, Union
import logging
from time import monotonic as _now

import httpx
from openai import APIError, APIStatusError, AsyncOpenAI
from pydantic import BaseModel

from app.core.config import Settings
from app.domain.models.chat import Message
from app.domain.services.constants import (
    MSG_BAD_REQUEST,
    MSG_QUOTA_EXHAUSTED,
    MSG_RATE_LIMITED,
    MSG_UPSTREAM_ERROR,
)

logger = logging.getLogger(__name__)

# Upstream error bodies are logged, never returned; keep the log line bounded
_LOGGED_BODY_MAX = 500

# =============================================================================
#                               RESULT TYPES
# =============================================================================

class FailureKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    BAD_REQUEST = "bad_request"
    UPSTREAM = "upstream"

class RelayFailure(BaseModel):
    """Caller-safe description of a failed upstream call."""
    kind: FailureKind
    status_code: int
    message: str
    model_config = {"frozen": True}

class UpstreamStream:
    """
    Open streamed response from the provider: iterate it for raw byte chunks,
    `aclose()` it to release the connection (idempotent).
    """

    def __init__(self, chunks: AsyncIterator[bytes], stack: AsyncExitStack):
        self._chunks = chunks
        self._stack = stack
        self.closed = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._chunks.__aiter__()

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._stack.aclose()

RelayResult = Union[UpstreamStream, RelayFailure]

def failure_for_status(status_code: int) -> RelayFailure:
    """Map a provider HTTP status to what the caller is allowed to see."""
    if status_code == 429:
        return RelayFailure(kind=FailureKind.RATE_LIMITED, status_code=429, message=MSG_RATE_LIMITED)
    if status_code == 402:
        return RelayFailure(kind=FailureKind.QUOTA_EXHAUSTED, status_code=402, message=MSG_QUOTA_EXHAUSTED)
    if status_code == 400:
        return RelayFailure(kind=FailureKind.BAD_REQUEST, status_code=400, message=MSG_BAD_REQUEST)
    return upstream_failure()

def upstream_failure() -> RelayFailure:
    return RelayFailure(kind=FailureKind.UPSTREAM, status_code=500, message=MSG_UPSTREAM_ERROR)

def build_messages(system_prompt: str, history: Sequence[Message]) -> List[Dict[str, str]]:
    """
    Exactly one system message, first, followed by the caller's user and
    assistant turns in their original order. Caller-supplied system entries
    are not forwarded: the persona prompt is owned by the backend.
    """
    turns = [m for m in history if m.role != "system"]
    if len(turns) != len(history):
        logger.warning(f"Ignoring {len(history) - len(turns)} caller-supplied system message(s)")
    return [{"role": "system", "content": system_prompt}] + [
        {"role": m.role, "content": m.content} for m in turns
    ]

# =============================================================================
#                               RELAYS
# =============================================================================

class OpenAIRelay:
    """
    OpenAI-compatible chat-completions endpoint (gateway or OpenAI itself).
    Uses the SDK's raw streaming response so the SSE body reaches the
    normalizer unparsed and unbuffered.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.http_client = http_client

    def _client(self) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=self.settings.LLM_API_KEY,
            base_url=self.settings.LLM_BASE_URL,
            timeout=self.settings.LLM_TIMEOUT_S,
            max_retries=0,  # the caller retries the whole request
            http_client=self.http_client,
        )

    async def open(self, system_prompt: str, history: Sequence[Message]) -> RelayResult:
        messages = build_messages(system_prompt, history)
        model = self.settings.LLM_CHAT_MODEL
        stack = AsyncExitStack()
        t0 = _now()
        try:
            client = self._client()
            stack.push_async_callback(client.close)
            response = await stack.enter_async_context(
                client.chat.completions.with_streaming_response.create(
                    model=model,
                    messages=messages,
                    stream=True,
                )
            )
        except APIStatusError as e:
            await stack.aclose()
            logger.error(
                f"LLM provider error status={e.status_code} model={model} "
                f"body={str(e.message)[:_LOGGED_BODY_MAX]}"
            )
            return failure_for_status(e.status_code)
        except APIError as e:
            await stack.aclose()
            logger.error(f"LLM provider unreachable model={model}: {e}")
            return upstream_failure()
        except BaseException:
            await stack.aclose()
            raise

        logger.info(
            f"LLM stream opened model={model} messages={len(messages)} "
            f"ttfb={_now() - t0:.3f}s"
        )
        return UpstreamStream(response.iter_bytes(), stack)

class NdjsonRelay:
    """
    Ollama-style /api/chat endpoint: same {model, messages, stream} payload,
    answer streamed as one JSON object per line.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.http_client = http_client

    async def open(self, system_prompt: str, history: Sequence[Message]) -> RelayResult:
        messages = build_messages(system_prompt, history)
        model = self.settings.LLM_CHAT_MODEL
        headers = {"Content-Type": "application/json"}
        if self.settings.LLM_API_KEY:
            headers["Authorization"] = f"Bearer {self.settings.LLM_API_KEY}"

        stack = AsyncExitStack()
        t0 = _now()
        try:
            client = self.http_client
            if client is None:
                client = httpx.AsyncClient(timeout=self.settings.LLM_TIMEOUT_S)
                stack.push_async_callback(client.aclose)
            request = client.build_request(
                "POST",
                self.settings.LLM_NDJSON_URL,
                json={"model": model, "messages": messages, "stream": True},
                headers=headers,
            )
            response = await client.send(request, stream=True)
            stack.push_async_callback(response.aclose)

            if response.is_error:
                body = (await response.aread()).decode("utf-8", errors="replace")
                await stack.aclose()
                logger.error(
                    f"LLM provider error status={response.status_code} model={model} "
                    f"body={body[:_LOGGED_BODY_MAX]}"
                )
                return failure_for_status(response.status_code)
        except httpx.HTTPError as e:
            await stack.aclose()
            logger.error(f"LLM provider unreachable url={self.settings.LLM_NDJSON_URL}: {e}")
            return upstream_failure()
        except BaseException:
            await stack.aclose()
            raise

        logger.info(
            f"LLM stream opened model={model} messages={len(messages)} "
            f"ttfb={_now() - t0:.3f}s"
        )
        return UpstreamStream(response.aiter_bytes(), stack)

def build_relay(settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
    if settings.LLM_PROVIDER == "openai":
        return OpenAIRelay(settings, http_client)
    if settings.LLM_PROVIDER == "ndjson":
        return NdjsonRelay(settings, http_client)
    raise ValueError(f"Unknown LLM provider: {settings.LLM_PROVIDER}")
