# app/domain/services/stream_decoders.py

from __future__ import annotations
from typing import Any, AsyncIterator, List, Optional, Protocol, Sequence
import codecs
import json
import logging

from app.domain.models.chat import StreamFrame

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"

# Content location per provider format
OPENAI_DELTA_PATH = ("choices", 0, "delta", "content")
OLLAMA_CONTENT_PATH = "message.content"
GEMINI_CONTENT_PATH = "candidates.0.content.parts.0.text"

# =============================================================================
#                               HELPERS
# =============================================================================

def parse_path(path: str) -> tuple:
    """'candidates.0.content' -> ('candidates', 0, 'content')"""
    return tuple(int(p) if p.isdigit() else p for p in path.split(".") if p)

def dig(obj: Any, path: Sequence) -> Any:
    """Walk dict keys / list indexes; None as soon as a step is missing."""
    for step in path:
        if isinstance(step, int):
            if not isinstance(obj, list) or step >= len(obj):
                return None
            obj = obj[step]
        else:
            if not isinstance(obj, dict):
                return None
            obj = obj.get(step)
        if obj is None:
            return None
    return obj

class StreamDecoder(Protocol):
    """Turns raw upstream bytes into canonical frames, chunk by chunk."""

    done: bool

    def feed(self, chunk: bytes) -> List[StreamFrame]: ...

    def flush(self) -> List[StreamFrame]: ...

# =============================================================================
#                               LINE FRAMING
# =============================================================================

class _LineDecoder:
    """
    Shared line framing: bytes -> text (incremental UTF-8) -> complete lines.
    The trailing partial line stays in `buffer` until its newline arrives.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.buffer = ""
        self.done = False

    def _lines(self, chunk: bytes) -> List[str]:
        self.buffer += self._utf8.decode(chunk)
        *lines, self.buffer = self.buffer.split("\n")
        return [ln[:-1] if ln.endswith("\r") else ln for ln in lines]

    def _drain(self) -> Optional[str]:
        """Leftover text after EOF (incomplete last line), if any."""
        self.buffer += self._utf8.decode(b"", final=True)
        rest, self.buffer = self.buffer, ""
        rest = rest.rstrip("\r")
        return rest if rest.strip() else None

    def _handle_line(self, line: str) -> List[StreamFrame]:
        raise NotImplementedError

    def feed(self, chunk: bytes) -> List[StreamFrame]:
        frames: List[StreamFrame] = []
        for line in self._lines(chunk):
            if self.done:
                break
            frames.extend(self._handle_line(line))
        return frames

# =============================================================================
#                               SSE (OpenAI-style)
# =============================================================================

class SSEDecoder(_LineDecoder):
    """
    `data: {json}` lines carrying choices[0].delta.content; `data: [DONE]` ends
    the stream. A complete data line that does not parse is held back and
    retried joined with the next line before being given up on.
    """

    def __init__(self) -> None:
        super().__init__()
        self._pending: Optional[str] = None

    @staticmethod
    def _payload(line: str) -> Optional[str]:
        if not line.startswith(SSE_DATA_PREFIX):
            return None
        return line[len(SSE_DATA_PREFIX):].strip()

    def _frames_from(self, payload: str) -> Optional[List[StreamFrame]]:
        """Frames for a JSON payload, or None if it is not (yet) valid JSON."""
        try:
            parsed = json.loads(payload)
        except json.JSONDecodeError:
            return None
        content = dig(parsed, OPENAI_DELTA_PATH)
        if isinstance(content, str) and content:
            return [StreamFrame.of(content)]
        return []

    def _handle_line(self, line: str) -> List[StreamFrame]:
        stripped = line.strip()
        # blank separators and `:` comments
        if not stripped or stripped.startswith(":"):
            return []

        if self._pending is not None:
            pending, self._pending = self._pending, None
            continuation = self._payload(line)
            joined = pending + (continuation if continuation is not None else stripped)
            frames = self._frames_from(joined)
            if frames is not None:
                return frames
            logger.warning(f"Dropping unparseable SSE fragment: {pending[:200]!r}")

        payload = self._payload(line)
        if payload is None:
            return []  # event:, id:, retry: fields
        if payload == SSE_DONE:
            self.done = True
            return []

        frames = self._frames_from(payload)
        if frames is None:
            self._pending = payload
            return []
        return frames

    def flush(self) -> List[StreamFrame]:
        frames: List[StreamFrame] = []
        rest = self._drain()
        if rest is not None and not self.done:
            frames.extend(self._handle_line(rest))
        if self._pending is not None:
            logger.warning(f"Stream ended with unparseable SSE fragment: {self._pending[:200]!r}")
            self._pending = None
        return frames

# =============================================================================
#                               JSON LINES (Ollama / Gemini-style)
# =============================================================================

class JSONLinesDecoder(_LineDecoder):
    """
    One JSON object per line, content at a provider-specific dotted path.
    A `"done": true` field ends the stream. Bad lines are logged and skipped.
    """

    def __init__(self, content_path: str = OLLAMA_CONTENT_PATH) -> None:
        super().__init__()
        self.content_path = parse_path(content_path)

    def _handle_line(self, line: str) -> List[StreamFrame]:
        stripped = line.strip()
        if not stripped:
            return []
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping unparseable JSON line ({e}): {stripped[:200]!r}")
            return []

        frames: List[StreamFrame] = []
        content = dig(parsed, self.content_path)
        if isinstance(content, str) and content:
            frames.append(StreamFrame.of(content))
        if isinstance(parsed, dict) and parsed.get("done") is True:
            self.done = True
        return frames

    def flush(self) -> List[StreamFrame]:
        rest = self._drain()
        if rest is None or self.done:
            return []
        return self._handle_line(rest)

# =============================================================================
#                               PUBLIC API
# =============================================================================

def build_decoder(provider: str, content_path: str = OLLAMA_CONTENT_PATH) -> StreamDecoder:
    if provider == "openai":
        return SSEDecoder()
    if provider == "ndjson":
        return JSONLinesDecoder(content_path)
    raise ValueError(f"Unknown LLM provider for stream decoding: {provider}")

async def normalize_stream(upstream, decoder: StreamDecoder) -> AsyncIterator[bytes]:
    """
    Re-emit the upstream body as canonical SSE frames, one `data:` event per
    content fragment, in arrival order.

    `upstream` is an async iterable of byte chunks exposing `aclose()`; it is
    always released, including when the consumer stops early (client gone).
    A read failure mid-stream ends the stream early instead of propagating.
    """
    emitted = 0
    try:
        try:
            async for chunk in upstream:
                for frame in decoder.feed(chunk):
                    emitted += 1
                    yield frame.to_sse()
                if decoder.done:
                    logger.debug("Upstream signalled end of stream")
                    break
        except Exception:
            # Headers are already sent: end the event stream cleanly with what we have
            logger.exception(f"Upstream read failed after {emitted} frames")
        for frame in decoder.flush():
            emitted += 1
            yield frame.to_sse()
    finally:
        await upstream.aclose()
        logger.info(f"Stream closed after {emitted} frames")
