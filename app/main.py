from fastapi import FastAPI
from app.core.config import get_settings
from app.core.lifespan import lifespan
from app.api.v1.routers.chat import router as chat_router
from app.api.v1.routers.products import router as products_router
from app.api.v1.routers.health import router as health_router
from app.core.logging import configure_logging

settings = get_settings()
configure_logging(settings.LOG_LEVEL, debug=settings.DEBUG)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# CORS: chat and seed routes answer preflight themselves with the exact
# header set the storefront expects, so no CORSMiddleware here.

# ------- Routes -------
app.include_router(health_router)
app.include_router(chat_router)              # Agen Alia chat (SSE)
app.include_router(products_router)          # catalog + seeding
