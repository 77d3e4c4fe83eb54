"""Shared test fixtures and configuration."""
import pytest
import os
from pathlib import Path
from unittest.mock import Mock, AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CAFE_NAME", "Cafe Delicia")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")

from cafe_ordering.main import app
from cafe_ordering.db.database import get_db
from cafe_ordering.db.models import Base
from cafe_ordering.core.dependencies import get_menu_repository, get_oracle_client
from cafe_ordering.services.agent.oracle import OracleClient, OracleFailure, OracleResult
from cafe_ordering.services.agent.retry import RetryPolicy
from cafe_ordering.services.call_session.controller import ConversationController
from cafe_ordering.services.call_session.registry import SessionRegistry
from cafe_ordering.services.menu.repository import MenuRepository
from cafe_ordering.services.menu.in_memory_menu import InMemoryMenuProvider
from cafe_ordering.services.notifications.dispatcher import NotificationDispatcher
from cafe_ordering.services.ordering.reconciler import Reconciler
from cafe_ordering.services.persistence.orders import OrderPersistenceService


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
ADMIN_KEY = os.environ["ADMIN_API_KEY"]


class ScriptedOracle:
    """Stands in for OracleClient, returning queued results in order."""

    def __init__(self, results=None):
        self.results = list(results or [])
        self.calls = []

    def push(self, *results):
        self.results.extend(results)

    async def query(self, transcript, state, menu):
        self.calls.append((transcript, state))
        if not self.results:
            return OracleFailure(reason="no scripted result", transient=False)
        return self.results.pop(0)


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def test_menu_path():
    """Return path to test menu YAML file."""
    return Path(__file__).parent / "fixtures" / "test_menu.yaml"


@pytest.fixture
def test_menu_repository(test_menu_path):
    """Create menu repository with test data."""
    provider = InMemoryMenuProvider(menu_file=str(test_menu_path))
    return MenuRepository(provider)


@pytest.fixture
async def test_menu(test_menu_repository):
    """Loaded test menu."""
    return await test_menu_repository.get_menu()


@pytest.fixture
def registry():
    """Fresh session registry."""
    return SessionRegistry()


@pytest.fixture
def scripted_oracle():
    """Oracle that replays queued results."""
    return ScriptedOracle()


@pytest.fixture
def make_result():
    """Build an OracleResult from the extractor's camelCase wire shape."""
    def _make_result(next_stage, items=None, response_text="Muy bien.", customer_name=None, customer_phone=None):
        payload = {
            "nextStage": next_stage,
            "items": items or [],
            "responseText": response_text,
        }
        if customer_name is not None:
            payload["customerName"] = customer_name
        if customer_phone is not None:
            payload["customerPhone"] = customer_phone
        return OracleResult.model_validate(payload)
    return _make_result


@pytest.fixture
def notifier():
    """Notification dispatcher with its delivery mocked."""
    dispatcher = NotificationDispatcher()
    dispatcher.notify = AsyncMock()
    return dispatcher


@pytest.fixture
def controller(registry, scripted_oracle, test_menu_repository, test_db, notifier):
    """Conversation controller wired to the test database and a scripted oracle."""
    return ConversationController(
        registry=registry,
        oracle=scripted_oracle,
        reconciler=Reconciler(),
        menu_repository=test_menu_repository,
        order_store=OrderPersistenceService(test_db),
        notifier=notifier,
    )


@pytest.fixture
def override_get_db(test_db):
    """Override get_db dependency with test database."""
    async def _override_get_db():
        yield test_db
    return _override_get_db


@pytest.fixture
def override_get_menu_repository(test_menu_repository):
    """Override get_menu_repository dependency with test menu."""
    def _override_get_menu_repository():
        return test_menu_repository
    return _override_get_menu_repository


@pytest.fixture
def test_client(override_get_db, override_get_menu_repository, scripted_oracle):
    """Create FastAPI test client with overrides."""
    # Override dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_menu_repository] = override_get_menu_repository
    app.dependency_overrides[get_oracle_client] = lambda: scripted_oracle
    app.state.session_registry = SessionRegistry()

    client = TestClient(app)

    yield client

    # Clear overrides
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    """Headers carrying the configured admin key."""
    return {"X-API-Key": ADMIN_KEY}


@pytest.fixture
def mock_openai():
    """Mock OpenAI API client."""
    mock_client = Mock()
    mock_completion = Mock()
    mock_completion.choices = [
        Mock(
            message=Mock(
                content='{"nextStage": "UPSELL_FINAL", "items": [{"name": "Latte", "preparationArea": "bar"}], '
                        '"responseText": "Un latte. ¿Algo más?"}'
            )
        )
    ]
    mock_client.chat.completions.create = AsyncMock(return_value=mock_completion)
    return mock_client


@pytest.fixture
def no_sleep():
    """Records backoff delays instead of sleeping."""
    delays = []

    async def _sleep(seconds):
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep


@pytest.fixture
def oracle_client(mock_openai, no_sleep):
    """OracleClient around the mocked OpenAI client with deterministic backoff."""
    return OracleClient(
        client=mock_openai,
        retry_policy=RetryPolicy(random_fn=lambda: 0.0),
        sleep=no_sleep,
        timeout_seconds=5.0,
    )
