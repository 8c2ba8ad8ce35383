# app/domain/services/seed_svc.py

from __future__ import annotations
from typing import List, Sequence
import logging
import time

from app.domain.models.product import ProductSeed, SeedResult
from app.domain.repositories.product_repo import ProductRepo
from app.domain.services.embedding_svc import embed, product_embedding_text

logger = logging.getLogger(__name__)

# Storefront catalog (prices in rupiah)
PRODUCTS_TO_SEED: List[ProductSeed] = [
    ProductSeed(
        name="Croissant Butter",
        description="Croissant renyah dengan lapisan butter premium",
        price=18000,
        badge="Bestseller",
    ),
    ProductSeed(
        name="Sourdough Classic",
        description="Roti sourdough dengan tekstur lembut dan rasa khas",
        price=35000,
        badge=None,
    ),
    ProductSeed(
        name="Cinnamon Rolls",
        description="Cinnamon rolls dengan cream cheese frosting",
        price=22000,
        badge="New",
    ),
    ProductSeed(
        name="Chocolate Cake",
        description="Kue coklat premium dengan dark chocolate ganache",
        price=180000,
        badge="Premium",
    ),
]

async def seed_products(repo: ProductRepo, products: Sequence[ProductSeed] = PRODUCTS_TO_SEED) -> List[SeedResult]:
    """
    Upsert every product (by name) with a freshly computed embedding.
    A failure on one product is recorded in its result and does not stop the others.
    """
    start_ts = time.perf_counter()
    logger.info(f"[seed] start products={len(products)}")

    results: List[SeedResult] = []
    for product in products:
        try:
            vec = embed(product_embedding_text(product))
            logger.debug(f"[seed] embedding for {product.name} dims={len(vec)}")
            row_id = await repo.upsert_by_name(product, vec)
            results.append(SeedResult(name=product.name, success=True, id=row_id))
            logger.info(f"[seed] upserted {product.name} id={row_id}")
        except Exception as e:
            logger.error(f"[seed] failed {product.name}: {e}")
            results.append(SeedResult(name=product.name, success=False, error=str(e)))

    elapsed_ms = (time.perf_counter() - start_ts) * 1000.0
    ok = sum(1 for r in results if r.success)
    logger.info(f"[seed] done ok={ok} failed={len(results) - ok} time_ms={elapsed_ms:.1f}")
    return results
