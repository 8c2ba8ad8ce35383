
import logging
from typing import List, Optional

from pydantic import ValidationError

from app.domain.models.product import MatchedProduct
from app.domain.repositories.product_search_repo import ProductSearchRepo
from app.domain.services.constants import MATCH_COUNT, MATCH_THRESHOLD
from app.domain.services.embedding_svc import embed

logger = logging.getLogger(__name__)

async def match_products(
    search_repo: Optional[ProductSearchRepo],
    user_text: str,
    *,
    match_count: int = MATCH_COUNT,
    match_threshold: float = MATCH_THRESHOLD,
) -> List[MatchedProduct]:
    """
    Products most similar to `user_text`, best first, at most `match_count`,
    none below `match_threshold`.

    Never raises: an unconfigured store, a network/HTTP error or a malformed
    payload all yield [] so the chat falls back to an ungrounded reply.
    """
    if search_repo is None:
        logger.warning("Product store not configured; skipping product matching")
        return []
    if not user_text or not user_text.strip():
        logger.debug("Empty user text; skipping product matching")
        return []

    query_embedding = embed(user_text)

    try:
        rows = await search_repo.match(
            query_embedding=query_embedding,
            match_count=match_count,
            match_threshold=match_threshold,
        )
        logger.info(f"Similarity search returned {len(rows)} rows")
    except Exception as e:
        logger.error(f"Similarity search failed: {e}")
        return []

    items: List[MatchedProduct] = []
    for row in rows:
        try:
            items.append(MatchedProduct.model_validate(row))
        except (ValidationError, TypeError) as e:
            logger.warning(f"Skipping malformed match row: {e}")

    # The RPC already filters and orders, but the store is not trusted on either
    kept = [it for it in items if it.similarity >= match_threshold]
    kept.sort(key=lambda it: it.similarity, reverse=True)
    kept = kept[:match_count]
    logger.debug(f"Kept {len(kept)}/{len(items)} matches (threshold={match_threshold}, k={match_count})")
    return kept
