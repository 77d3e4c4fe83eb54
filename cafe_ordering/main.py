"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cafe_ordering.api import health, menu, orders
from cafe_ordering.api.webhooks import voice
from cafe_ordering.core.config import settings
from cafe_ordering.core.logging import setup_logging
from cafe_ordering.db.database import init_db
from cafe_ordering.services.call_session.registry import SessionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    await init_db()
    yield
    # Sessions live in memory only; calls still in progress are lost
    dropped = await app.state.session_registry.active_call_ids()
    if dropped:
        logger.warning(f"[SHUTDOWN] Dropping {len(dropped)} in-progress call(s): {', '.join(dropped)}")


def create_app() -> FastAPI:
    """Build the FastAPI application with its own session registry."""
    application = FastAPI(
        title="Cafe Voice Ordering",
        description=f"Phone ordering assistant for {settings.cafe_name}",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.session_registry = SessionRegistry()

    application.include_router(health.router, tags=["health"])
    application.include_router(voice.router, prefix="/webhooks", tags=["webhooks"])
    application.include_router(orders.router, tags=["orders"])
    application.include_router(menu.router, tags=["menu"])
    return application


app = create_app()


@app.get("/")
async def root():
    """Service banner."""
    return {
        "message": f"{settings.cafe_name} voice ordering API",
        "version": "0.1.0",
        "twilio_webhook": "/webhooks/voice/conversation",
    }
