# app/api/deps.py
from fastapi import Depends
from app.core.config import Settings, get_settings
from app.db.supabase import get_client
from app.domain.repositories.product_repo import ProductRepo
from app.domain.repositories.product_search_repo import ProductSearchRepo
from app.domain.services.llm_relay import build_relay

# Dependency for injecting the shared Supabase REST client (None if not configured)
def store_client():
    return get_client()

# Similarity-search repository, or None so that matching degrades to "no products"
def product_search_repo(client = Depends(store_client), settings: Settings = Depends(get_settings)):
    if client is None:
        return None
    return ProductSearchRepo(client, function_name=settings.match_function)

def product_repo(client = Depends(store_client)):
    if client is None:
        return None
    return ProductRepo(client)

# Relay to the configured LLM provider; the SDK client is only built when a stream is opened
def llm_relay(settings: Settings = Depends(get_settings)):
    return build_relay(settings)
