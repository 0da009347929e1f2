"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. The engine is built by the same
build_engine() the application uses, so tests run with the
same SQLite locking behaviour (deferred reads, BEGIN IMMEDIATE
for units of work, foreign keys).
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from cash_ledger.main import app
from cash_ledger.models.base import Base, build_engine, get_db, unit_of_work
from cash_ledger.schemas.account import CashAccountCreate
from cash_ledger.services.account_service import AccountService


TEST_DATABASE_URL = "sqlite:///./test.db"

engine = build_engine(TEST_DATABASE_URL)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory():
    """Session factory for tests that need more than one session."""
    return TestSessionLocal


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the FastAPI app
    uses the test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(db_session):
    """Create and commit a cash account, returning its id."""
    def _make(name: str) -> int:
        with unit_of_work(db_session):
            account = AccountService(db_session).create_account(
                CashAccountCreate(name=name)
            )
            account_id = account.id
        return account_id
    return _make
