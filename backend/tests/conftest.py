"""Pytest fixtures and configuration."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

# Set environment variables before importing app modules
os.environ["BLOB_BACKEND"] = "local"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="pocketledger-tests-")
os.environ["ENVIRONMENT"] = "development"

from app.client.ledger import OfflineLedger  # noqa: E402
from app.client.local_store import LocalStore  # noqa: E402
from app.repositories.record_repo import RecordRepository  # noqa: E402
from app.repositories.user_repo import UserRepository  # noqa: E402
from app.services.auth_service import AuthService  # noqa: E402
from app.services.debt_service import DebtService  # noqa: E402
from app.services.transaction_service import TransactionService  # noqa: E402
from app.storage.blob_store import (  # noqa: E402
    DEBTS_STORE,
    TRANSACTIONS_STORE,
    USERS_STORE,
    LocalBlobStore,
)


@pytest.fixture
def sample_transactions() -> list[dict[str, Any]]:
    """Sample transaction data for testing."""
    return [
        {
            "id": "txn-1",
            "type": "expense",
            "amount": 99.99,
            "date": "2024-01-15T10:00:00+00:00",
            "reason": "Amazon purchase",
            "category": "Shopping",
            "account_name": "Credit Card",
        },
        {
            "id": "txn-2",
            "type": "income",
            "amount": 5000.00,
            "date": "2024-01-16T09:00:00+00:00",
            "reason": "Salary deposit",
            "category": "Salary",
            "account_name": "Checking",
        },
        {
            "id": "txn-3",
            "type": "expense",
            "amount": 5.50,
            "date": "2024-01-17T08:30:00+00:00",
            "reason": "Coffee",
            "category": "Food & Dining",
            "account_name": None,
        },
        {
            "id": "txn-4",
            "type": "expense",
            "amount": 150.00,
            "date": "2024-02-01T12:00:00+00:00",
            "reason": "Electric bill",
            "category": "Utilities",
            "account_name": "Checking",
        },
    ]


@pytest.fixture
def sample_debt() -> dict[str, Any]:
    return {
        "id": "debt-1",
        "type": "debtor",
        "amount": 100.0,
        "person_name": "Sam Lee",
        "reason": "Concert tickets",
        "date": "2024-01-10T00:00:00+00:00",
        "paid_amount": 0,
        "status": "unpaid",
        "payments": [],
    }


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for blob data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def transaction_repo(temp_data_dir: Path) -> RecordRepository:
    return RecordRepository(LocalBlobStore(TRANSACTIONS_STORE, base_dir=temp_data_dir), "transactions")


@pytest.fixture
def debt_repo(temp_data_dir: Path) -> RecordRepository:
    return RecordRepository(LocalBlobStore(DEBTS_STORE, base_dir=temp_data_dir), "debts")


@pytest.fixture
def user_repo(temp_data_dir: Path) -> UserRepository:
    return UserRepository(LocalBlobStore(USERS_STORE, base_dir=temp_data_dir))


@pytest.fixture
def transaction_service(transaction_repo: RecordRepository) -> TransactionService:
    return TransactionService(transaction_repo)


@pytest.fixture
def debt_service(debt_repo: RecordRepository) -> DebtService:
    return DebtService(debt_repo)


@pytest.fixture
def auth_service(user_repo: UserRepository) -> AuthService:
    return AuthService(user_repo)


@pytest.fixture
def app_client(transaction_service, debt_service, auth_service) -> Generator[TestClient, None, None]:
    """Test client wired to services backed by a temporary blob store."""
    from app.api.dependencies import get_auth_service, get_debt_service, get_transaction_service
    from app.main import app

    app.dependency_overrides[get_transaction_service] = lambda: transaction_service
    app.dependency_overrides[get_debt_service] = lambda: debt_service
    app.dependency_overrides[get_auth_service] = lambda: auth_service

    yield TestClient(app)

    app.dependency_overrides.pop(get_transaction_service, None)
    app.dependency_overrides.pop(get_debt_service, None)
    app.dependency_overrides.pop(get_auth_service, None)


@pytest.fixture
def client(app_client: TestClient) -> TestClient:
    """Test client identified as ``test-user``."""
    app_client.headers["X-User-Id"] = "test-user"
    return app_client


@pytest.fixture
def local_store(tmp_path: Path) -> LocalStore:
    return LocalStore(tmp_path / "cache.json")


@pytest.fixture
def ledger(client: TestClient, local_store: LocalStore) -> OfflineLedger:
    """Offline ledger talking to the in-process API as ``test-user``."""
    return OfflineLedger(client, local_store)
