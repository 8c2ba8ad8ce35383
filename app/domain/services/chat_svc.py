# app/domain/services/chat_svc.py
from __future__ import annotations
from typing import Optional, Sequence
import logging

from app.core.config import Settings
from app.domain.models.chat import Message
from app.domain.repositories.product_search_repo import ProductSearchRepo
from app.domain.services.llm_relay import RelayResult
from app.domain.services.prompts import system_prompt
from app.domain.services.retrieval import match_products

logger = logging.getLogger(__name__)

def last_user_message(messages: Sequence[Message]) -> Optional[Message]:
    """Most recent `user` turn, scanning from the end of the history."""
    for m in reversed(messages):
        if m.role == "user":
            return m
    return None

async def grounded_system_prompt(
    messages: Sequence[Message],
    search_repo: Optional[ProductSearchRepo],
    settings: Settings,
) -> str:
    """
    System prompt for this turn: persona plus the products matching the
    latest user message. Without a user turn the persona prompt is used as is.
    """
    latest = last_user_message(messages)
    if latest is None:
        logger.info("No user turn in history; replying without product grounding")
        return system_prompt([])

    matched = await match_products(
        search_repo,
        latest.content,
        match_count=settings.match_count,
        match_threshold=settings.match_threshold,
    )
    logger.info(f"Grounding prompt with {len(matched)} products: {[m.name for m in matched]}")
    return system_prompt(matched)

async def start_chat(
    messages: Sequence[Message],
    *,
    search_repo: Optional[ProductSearchRepo],
    relay,
    settings: Settings,
) -> RelayResult:
    """Match -> compose -> relay. Returns the open upstream stream or a RelayFailure."""
    prompt = await grounded_system_prompt(messages, search_repo, settings)
    return await relay.open(prompt, messages)
