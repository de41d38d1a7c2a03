# backend/tests/test_store.py
import asyncio
from datetime import datetime, timezone

import pytest

from webwallet.core.errors import (
    AssetNotFoundError,
    ConcurrentModificationError,
    InvalidQuantityError,
    InvalidWalletTypeError,
    StorageError,
    StorageTimeoutError,
    SubscriptionNotFoundError,
    WriteConflictError,
)
from webwallet.db.documents import InMemoryDocumentStore
from webwallet.db.repositories import DEFAULT_PORTFOLIO_ID, PortfolioStore
from webwallet.models.portfolio import Frequency, InvestmentPortfolio


class SlowDocumentStore(InMemoryDocumentStore):
    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay

    async def get(self, key):
        await asyncio.sleep(self.delay)
        return await super().get(key)


class CountingDocumentStore(InMemoryDocumentStore):
    def __init__(self):
        super().__init__()
        self.writes = 0

    async def upsert(self, key, document, expected_version=None):
        self.writes += 1
        await super().upsert(key, document, expected_version)


@pytest.mark.asyncio
async def test_load_missing_document_returns_empty_portfolio(store, documents):
    p = await store.load()
    assert p.is_empty()
    assert p.version == 0
    assert await documents.get(DEFAULT_PORTFOLIO_ID) is None


@pytest.mark.asyncio
async def test_save_then_load_round_trip(store, make_asset, make_subscription):
    p = InvestmentPortfolio()
    p.add_asset(make_asset("A1", quantity=10, avg_cost=100, current_price=110))
    p.add_asset(make_asset("A2", quantity=0.5, avg_cost=2000, current_price=0, wallet_type="short_term"))
    p.add_subscription(make_subscription("S1", cost=50, next_due=datetime(2026, 11, 1, tzinfo=timezone.utc)))
    p.add_subscription(make_subscription("S2", cost=240, frequency=Frequency.YEARLY))
    totals = (p.get_total_value(), p.get_total_cost(), p.get_monthly_subscription_cost())

    await store.save(p)
    loaded = await store.load()

    assert loaded.assets == p.assets
    assert loaded.subscriptions == p.subscriptions
    assert (loaded.get_total_value(), loaded.get_total_cost(), loaded.get_monthly_subscription_cost()) == totals
    assert loaded.version == 1


@pytest.mark.asyncio
async def test_update_asset_weighted_average(store, make_asset):
    await store.add_asset(make_asset("A1", quantity=10, avg_cost=100, current_price=130))

    p = await store.update_asset("A1", additional_quantity=5, new_purchase_price=120)
    asset = p.find_asset("A1")
    assert asset.quantity == 15
    assert asset.avg_cost == pytest.approx(106.6666666, rel=1e-6)
    assert asset.current_price == 130

    reloaded = (await store.load()).find_asset("A1")
    assert reloaded.avg_cost == pytest.approx(asset.avg_cost)


@pytest.mark.asyncio
async def test_remove_missing_asset_changes_nothing(store, documents, make_asset):
    await store.add_asset(make_asset("A1"))
    before = await documents.get(DEFAULT_PORTFOLIO_ID)

    with pytest.raises(AssetNotFoundError):
        await store.remove_asset("nonexistent-id")

    assert await documents.get(DEFAULT_PORTFOLIO_ID) == before
    assert [a.id for a in (await store.load()).assets] == ["A1"]


@pytest.mark.asyncio
async def test_update_to_zero_quantity_fails_before_save(make_asset):
    documents = CountingDocumentStore()
    store = PortfolioStore(documents)
    await store.add_asset(make_asset("A1", quantity=10, avg_cost=100))
    before = await documents.get(DEFAULT_PORTFOLIO_ID)
    writes = documents.writes

    with pytest.raises(InvalidQuantityError):
        await store.update_asset("A1", additional_quantity=-10, new_purchase_price=100)

    assert documents.writes == writes
    assert await documents.get(DEFAULT_PORTFOLIO_ID) == before


@pytest.mark.asyncio
async def test_remove_asset(store, make_asset):
    await store.add_asset(make_asset("A1", quantity=1, avg_cost=10, current_price=10))
    await store.add_asset(make_asset("A2", quantity=2, avg_cost=10, current_price=10))

    p = await store.remove_asset("A1")
    assert [a.id for a in p.assets] == ["A2"]
    assert p.total_value == 20.0
    assert (await store.load()).total_value == 20.0


@pytest.mark.asyncio
async def test_update_current_price_keeps_cost_basis(store, make_asset):
    await store.add_asset(make_asset("A1", quantity=10, avg_cost=100, current_price=100))

    p = await store.update_asset_current_price("A1", 150)
    assert p.get_total_value() == 1500.0
    assert p.get_total_cost() == 1000.0
    assert p.get_profit_loss_percentage() == pytest.approx(50.0)

    with pytest.raises(AssetNotFoundError):
        await store.update_asset_current_price("missing", 1)


@pytest.mark.asyncio
async def test_update_wallet_type(store, make_asset):
    await store.add_asset(make_asset("A1"))

    p = await store.update_asset_wallet_type("A1", "financial_cushion")
    assert p.find_asset("A1").wallet_type == "financial_cushion"

    with pytest.raises(InvalidWalletTypeError):
        await store.update_asset_wallet_type("A1", "lottery")
    assert (await store.load()).find_asset("A1").wallet_type == "financial_cushion"


@pytest.mark.asyncio
async def test_subscription_lifecycle(store, make_subscription):
    await store.add_subscription(make_subscription("S1", cost=50))
    await store.add_subscription(make_subscription("S2", cost=240, frequency=Frequency.YEARLY))
    assert (await store.load()).get_monthly_subscription_cost() == 70.0

    replacement = make_subscription("S1", cost=600, frequency=Frequency.YEARLY, name="Gym")
    p = await store.update_subscription(replacement)
    assert p.find_subscription("S1").name == "Gym"
    assert p.monthly_subscription_cost == pytest.approx(70.0)

    p = await store.remove_subscription("S2")
    assert [s.id for s in p.subscriptions] == ["S1"]
    assert p.monthly_subscription_cost == pytest.approx(50.0)

    with pytest.raises(SubscriptionNotFoundError):
        await store.remove_subscription("S2")
    with pytest.raises(SubscriptionNotFoundError):
        await store.update_subscription(make_subscription("S2"))


@pytest.mark.asyncio
async def test_concurrent_mutations_lose_nothing(store, make_asset):
    await asyncio.gather(*(
        store.add_asset(make_asset(f"A{i}", quantity=1, avg_cost=10, current_price=10))
        for i in range(20)
    ))

    p = await store.load()
    assert len(p.assets) == 20
    assert p.get_total_value() == 200.0
    assert p.version == 20


@pytest.mark.asyncio
async def test_stale_save_is_rejected(documents, make_asset):
    first = PortfolioStore(documents)
    second = PortfolioStore(documents)
    await first.add_asset(make_asset("A1"))

    stale = await second.load()
    await first.add_asset(make_asset("A2"))

    stale.add_asset(make_asset("A3"))
    with pytest.raises(ConcurrentModificationError):
        await second.save(stale)

    assert [a.id for a in (await first.load()).assets] == ["A1", "A2"]


@pytest.mark.asyncio
async def test_mutation_retries_after_conflict(make_asset):
    class RacingDocumentStore(InMemoryDocumentStore):
        """Lets another writer slip in before the first save"""
        raced = False

        async def upsert(self, key, document, expected_version=None):
            if not self.raced:
                self.raced = True
                await super().upsert(key, {"assets": [], "subscriptions": [], "version": 1}, None)
            await super().upsert(key, document, expected_version)

    store = PortfolioStore(RacingDocumentStore(), max_retries=2)
    p = await store.add_asset(make_asset("A1"))

    assert [a.id for a in p.assets] == ["A1"]
    assert p.version == 2


@pytest.mark.asyncio
async def test_conflicts_exhaust_retries(make_asset):
    class AlwaysConflicting(InMemoryDocumentStore):
        async def upsert(self, key, document, expected_version=None):
            raise WriteConflictError("someone else won")

    store = PortfolioStore(AlwaysConflicting(), max_retries=3)
    with pytest.raises(ConcurrentModificationError):
        await store.add_asset(make_asset("A1"))


@pytest.mark.asyncio
async def test_deadline_exceeded():
    store = PortfolioStore(SlowDocumentStore(delay=0.5), timeout=0.05)
    with pytest.raises(StorageTimeoutError):
        await store.load()

    # per-call deadline overrides the store default
    p = await store.load(timeout=2.0)
    assert p.is_empty()


@pytest.mark.asyncio
async def test_undecodable_document_is_a_storage_error(documents, store):
    await documents.upsert(DEFAULT_PORTFOLIO_ID, {"assets": [{"name": "no id"}]})
    with pytest.raises(StorageError):
        await store.load()


@pytest.mark.asyncio
async def test_legacy_frequency_labels_load(documents, store):
    await documents.upsert(DEFAULT_PORTFOLIO_ID, {
        "assets": [],
        "subscriptions": [
            {"id": "S1", "name": "Netflix", "cost": 60, "frequency": "Miesięcznie"},
            {"id": "S2", "name": "Domain", "cost": 120, "frequency": "Rocznie"},
            {"id": "S3", "name": "Magazine", "cost": 30, "frequency": "Kwartalnie"},
        ],
        "version": 4,
    })

    p = await store.load()
    assert [s.frequency for s in p.subscriptions] == [Frequency.MONTHLY, Frequency.YEARLY, Frequency.OTHER]
    assert p.get_monthly_subscription_cost() == 70.0
    assert p.version == 4


@pytest.mark.asyncio
async def test_seed_sample_data_only_when_empty(store, make_asset):
    p = await store.seed_sample_data()
    assert len(p.assets) == 1 and len(p.subscriptions) == 1
    assert p.get_total_value() == 1000.0
    assert p.get_monthly_subscription_cost() == 50.0

    again = await store.seed_sample_data()
    assert again.version == p.version
    assert len(again.assets) == 1


@pytest.mark.asyncio
async def test_unversioned_document_can_be_mutated(documents, store):
    await documents.upsert(DEFAULT_PORTFOLIO_ID, {
        "assets": [
            {"id": "A1", "name": "Old", "quantity": 1, "avgCost": 10, "currentPrice": 10},
            {"id": "A2", "name": "Kept", "quantity": 2, "avgCost": 10, "currentPrice": 10},
        ],
        "subscriptions": [],
    })
    assert (await store.load()).version == 0

    p = await store.remove_asset("A1")
    assert [a.id for a in p.assets] == ["A2"]
    assert p.version == 1

    stored = await documents.get(DEFAULT_PORTFOLIO_ID)
    assert stored["version"] == 1
    assert [a["id"] for a in stored["assets"]] == ["A2"]


@pytest.mark.asyncio
async def test_first_save_loses_to_versioned_document(documents):
    await documents.upsert(DEFAULT_PORTFOLIO_ID, {"assets": [], "subscriptions": [], "version": 3})
    with pytest.raises(WriteConflictError):
        await documents.upsert(DEFAULT_PORTFOLIO_ID, {"assets": [], "version": 1}, expected_version=0)
    assert (await documents.get(DEFAULT_PORTFOLIO_ID))["version"] == 3


@pytest.mark.asyncio
async def test_update_to_negative_average_cost_fails_before_save(make_asset):
    documents = CountingDocumentStore()
    store = PortfolioStore(documents)
    await store.add_asset(make_asset("A1", quantity=10, avg_cost=100))
    writes = documents.writes

    with pytest.raises(InvalidQuantityError):
        await store.update_asset("A1", additional_quantity=-9, new_purchase_price=200)

    assert documents.writes == writes
    asset = (await store.load()).find_asset("A1")
    assert asset.quantity == 10
    assert asset.avg_cost == 100
