"""FastAPI dependencies."""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_ordering.core.config import settings
from cafe_ordering.db.database import get_db
from cafe_ordering.services.agent.oracle import OracleClient
from cafe_ordering.services.call_session.controller import ConversationController
from cafe_ordering.services.call_session.registry import SessionRegistry
from cafe_ordering.services.menu.in_memory_menu import InMemoryMenuProvider
from cafe_ordering.services.menu.repository import MenuRepository
from cafe_ordering.services.notifications.dispatcher import NotificationDispatcher
from cafe_ordering.services.ordering.reconciler import Reconciler
from cafe_ordering.services.persistence.orders import OrderPersistenceService


def get_menu_repository() -> MenuRepository:
    """Get menu repository instance."""
    return MenuRepository(provider=InMemoryMenuProvider(menu_file=settings.menu_file))


def get_session_registry(request: Request) -> SessionRegistry:
    """Get the application's session registry."""
    return request.app.state.session_registry


def get_oracle_client() -> OracleClient:
    """Get extractor client."""
    return OracleClient()


def get_conversation_controller(
    db: AsyncSession = Depends(get_db),
    menu_repository: MenuRepository = Depends(get_menu_repository),
    registry: SessionRegistry = Depends(get_session_registry),
    oracle: OracleClient = Depends(get_oracle_client),
) -> ConversationController:
    """Get conversation controller for the current request."""
    return ConversationController(
        registry=registry,
        oracle=oracle,
        reconciler=Reconciler(),
        menu_repository=menu_repository,
        order_store=OrderPersistenceService(db),
        notifier=NotificationDispatcher(),
    )
