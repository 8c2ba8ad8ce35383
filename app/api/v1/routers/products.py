# app/api/routers/products.py

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from typing import List
import time

import httpx
from pydantic import ValidationError
from app.api.deps import product_repo
from app.api.v1.schemas.products import ProductOut, SeedOut
from app.core.config import Settings, get_settings
from app.core.cors import CORS_HEADERS
from app.domain.services.constants import MSG_CONFIG_ERROR, MSG_INTERNAL_ERROR
from app.domain.services.seed_svc import seed_products

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])


@router.get("/products", response_model=List[ProductOut], summary="Storefront catalog (without embeddings)")
async def list_products(repo = Depends(product_repo)):
    if repo is None:
        return JSONResponse({"error": MSG_CONFIG_ERROR}, status_code=500, headers=CORS_HEADERS)
    try:
        products = await repo.list_products()
    except (httpx.HTTPError, ValidationError) as e:
        logger.error(f"Catalog read failed: {e}")
        return JSONResponse({"error": MSG_INTERNAL_ERROR}, status_code=500, headers=CORS_HEADERS)
    logger.info(f"Catalog: {len(products)} products")
    out = [ProductOut.model_validate(p.model_dump(exclude={"embedding"})) for p in products]
    return JSONResponse([p.model_dump(mode="json") for p in out], headers=CORS_HEADERS)


@router.options("/seed-products")
async def seed_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/seed-products", response_model=SeedOut, summary="Upsert the bakery catalog with embeddings")
async def seed(
    settings: Settings = Depends(get_settings),
    repo = Depends(product_repo),
):
    """
    (Re)creates the catalog rows by name, each with the embedding of
    "{name} {description}" used by chat product matching.
    Per-product failures are listed in `results`; the call itself only fails
    when the store is not configured.
    """
    missing = settings.missing_store_settings()
    if missing or repo is None:
        logger.error(f"[seed] store not configured, missing: {', '.join(missing) or 'client'}")
        return JSONResponse(
            SeedOut(success=False, error=MSG_CONFIG_ERROR).model_dump(),
            status_code=500,
            headers=CORS_HEADERS,
        )

    start = time.perf_counter()
    results = await seed_products(repo)
    logger.info(f"[seed] finished in {(time.perf_counter() - start) * 1000.0:.1f}ms")
    return JSONResponse(
        SeedOut(success=True, results=results).model_dump(),
        headers=CORS_HEADERS,
    )
