# backend/tests/conftest.py
import os
import pytest

# in-memory storage for the whole session, set before the app is imported
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SEED_SAMPLE_DATA"] = "0"

from webwallet.db.documents import InMemoryDocumentStore
from webwallet.db.repositories import PortfolioStore
from webwallet.models.portfolio import Asset, Frequency, Subscription


@pytest.fixture
def documents():
    return InMemoryDocumentStore()


@pytest.fixture
def store(documents):
    return PortfolioStore(documents, timeout=2.0, max_retries=3)


@pytest.fixture
def make_asset():
    def _make(asset_id="A1", quantity=10.0, avg_cost=100.0, current_price=100.0, **extra):
        return Asset(
            id=asset_id,
            name=extra.pop("name", f"Asset {asset_id}"),
            symbol=extra.pop("symbol", asset_id),
            type=extra.pop("type", "Stocks"),
            quantity=quantity,
            avg_cost=avg_cost,
            current_price=current_price,
            **extra,
        )
    return _make


@pytest.fixture
def make_subscription():
    def _make(subscription_id="S1", cost=50.0, frequency=Frequency.MONTHLY, **extra):
        return Subscription(
            id=subscription_id,
            name=extra.pop("name", f"Subscription {subscription_id}"),
            cost=cost,
            frequency=frequency,
            **extra,
        )
    return _make


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from webwallet.main import app

    # IMPORTANT: use context manager so lifespan startup/shutdown run (fresh store per test)
    with TestClient(app) as c:
        yield c
