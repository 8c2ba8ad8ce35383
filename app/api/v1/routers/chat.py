# app/api/v1/routers/chat.py
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import ValidationError
import json
import logging
import time

from app.api.deps import llm_relay, product_search_repo
from app.api.v1.schemas.chat import ChatIn, ErrorOut
from app.core.config import Settings, get_settings
from app.core.cors import CORS_HEADERS
from app.domain.services.chat_svc import start_chat
from app.domain.services.constants import (
    MSG_CONFIG_ERROR,
    MSG_INTERNAL_ERROR,
    MSG_INVALID_BODY,
    MSG_NO_MESSAGES,
)
from app.domain.services.llm_relay import RelayFailure
from app.domain.services.stream_decoders import build_decoder, normalize_stream

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


@router.options("/chat")
async def chat_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post(
    "/chat",
    responses={code: {"model": ErrorOut} for code in (400, 402, 429, 500)},
)
async def chat(
    request: Request,
    settings: Settings = Depends(get_settings),
    search_repo = Depends(product_search_repo),
    relay = Depends(llm_relay),
):
    """
    Agen Alia chat assistant.
    Body: {"messages": [{"role": "user"|"assistant"|"system", "content": "..."}]}
    Pipeline: last user turn → product matching → grounded system prompt →
    provider stream → canonical SSE frames (text/event-stream).
    """
    start_time = time.perf_counter()
    try:
        try:
            body = ChatIn.model_validate(await request.json())
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"Rejected chat request body: {e}")
            return _error(400, MSG_INVALID_BODY)
        if not body.messages:
            return _error(400, MSG_NO_MESSAGES)

        missing = settings.missing_chat_settings()
        if missing:
            logger.error(f"Chat not configured, missing: {', '.join(missing)}")
            return _error(500, MSG_CONFIG_ERROR)

        logger.info(f"Request: chat messages={len(body.messages)} provider={settings.LLM_PROVIDER}")
        decoder = build_decoder(settings.LLM_PROVIDER, settings.LLM_NDJSON_CONTENT_PATH)

        result = await start_chat(
            body.messages,
            search_repo=search_repo,
            relay=relay,
            settings=settings,
        )
        if isinstance(result, RelayFailure):
            logger.warning(f"Chat upstream failure kind={result.kind.value} status={result.status_code}")
            return _error(result.status_code, result.message)

        logger.info(f"Response: chat streaming, setup_time={time.perf_counter() - start_time:.4f}s")
        return StreamingResponse(
            normalize_stream(result, decoder),
            media_type="text/event-stream",
            headers=CORS_HEADERS,
        )
    except Exception:
        logger.exception("Chat error")
        return _error(500, MSG_INTERNAL_ERROR)
