# app/domain/repositories/product_repo.py

from __future__ import annotations
from typing import List, Optional

import httpx
from app.domain.models.product import Product, ProductSeed

# Columns exposed to the storefront (the embedding stays server-side)
_CATALOG_COLUMNS = "id,name,description,price,badge,created_at,updated_at"

class ProductRepo:
    """
    Product repository backed by the Supabase 'products' table.
    Rows are unique by `name`; the seeding path upserts on that column.
    """

    def __init__(self, client: httpx.AsyncClient, table: str = "products"):
        self.client = client
        self.table = table

    async def list_products(self) -> List[Product]:
        resp = await self.client.get(
            f"/{self.table}",
            params={"select": _CATALOG_COLUMNS, "order": "name.asc"},
        )
        resp.raise_for_status()
        return [Product.model_validate(row) for row in resp.json()]

    async def upsert_by_name(self, seed: ProductSeed, embedding: List[float]) -> Optional[str]:
        """
        Insert or update a product (conflict on `name`) together with its embedding.
        Returns the row id reported by the store, if any.
        """
        resp = await self.client.post(
            f"/{self.table}",
            params={"on_conflict": "name"},
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
            json={
                "name": seed.name,
                "description": seed.description,
                "price": seed.price,
                "badge": seed.badge,
                "embedding": embedding,
            },
        )
        resp.raise_for_status()
        rows = resp.json() or []
        return str(rows[0]["id"]) if rows and rows[0].get("id") is not None else None

    async def ping(self) -> None:
        """Cheapest query that proves the table is reachable."""
        resp = await self.client.get(f"/{self.table}", params={"select": "id", "limit": 1})
        resp.raise_for_status()
