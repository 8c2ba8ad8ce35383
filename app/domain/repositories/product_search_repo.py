# app/domain/repositories/product_search_repo.py
from __future__ import annotations
from typing import Any, Dict, List

import httpx


class ProductSearchRepo:
    """
    Similarity search over `products.embedding`, delegated to a Postgres
    function exposed by PostgREST:
      match_products(query_embedding, match_count, match_threshold)
    returning rows ranked by cosine similarity with a `similarity` field.
    """

    def __init__(self, client: httpx.AsyncClient, function_name: str = "match_products"):
        self.client = client
        self.function_name = function_name

    async def match(
        self,
        query_embedding: List[float],
        match_count: int,
        match_threshold: float,
    ) -> List[Dict[str, Any]]:
        """
        Call the RPC and return the raw rows.
        Raises httpx.HTTPError on transport/HTTP failures, ValueError on a non-list payload.
        """
        resp = await self.client.post(
            f"/rpc/{self.function_name}",
            json={
                "query_embedding": query_embedding,
                "match_count": match_count,
                "match_threshold": match_threshold,
            },
        )
        resp.raise_for_status()
        rows = resp.json()
        if not isinstance(rows, list):
            raise ValueError(f"Unexpected RPC payload type: {type(rows).__name__}")
        return rows
