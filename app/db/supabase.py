# app/db/supabase.py
import logging

import httpx
from app.core.config import get_settings

logger = logging.getLogger(__name__)

_client: httpx.AsyncClient | None = None


def new_client(url: str, key: str, timeout: float = 10.0, **kwargs) -> httpx.AsyncClient:
    """
    HTTP client bound to the Supabase PostgREST API (/rest/v1).
    The service-role key goes both in `apikey` and as bearer token.
    """
    return httpx.AsyncClient(
        base_url=f"{url.rstrip('/')}/rest/v1",
        headers={
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        },
        timeout=timeout,
        **kwargs,
    )


async def connect():
    """
    Open the shared store client if SUPABASE_URL / key are set.
    Missing settings are not fatal here: request paths that need the store
    report the configuration error themselves.
    """
    global _client
    settings = get_settings()
    missing = settings.missing_store_settings()
    if missing:
        logger.warning(f"Store not configured (missing {', '.join(missing)}), skipping Supabase client")
        _client = None
        return

    _client = new_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY, settings.store_timeout_s)
    logger.info(f"Supabase client ready for {settings.SUPABASE_URL}")


async def disconnect():
    global _client
    if _client:
        await _client.aclose()
    _client = None


def get_client() -> httpx.AsyncClient | None:
    """
    Shared store client, or None when the store is not configured.
    To be handled by the caller.
    """
    return _client
