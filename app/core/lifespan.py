# app/core/lifespan.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from app.db import supabase

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    # Store is optional at startup; chat degrades to ungrounded replies without it
    try:
        await supabase.connect()
    except Exception as e:
        logger.warning(f"Supabase client init failed (ignored): {e}")

    # Application runs
    yield

    # --- Shutdown ---
    try:
        await supabase.disconnect()
        logger.info("Supabase client closed")
    except Exception as e:
        logger.warning(f"Supabase client close failed: {e}")
