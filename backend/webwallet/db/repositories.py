# backend/webwallet/db/repositories.py
"""Repository for the single portfolio document"""

from __future__ import annotations
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from pydantic import ValidationError

from webwallet.core.errors import (
    ConcurrentModificationError,
    StorageError,
    StorageTimeoutError,
    WriteConflictError,
)
from webwallet.db.documents import DocumentStore
from webwallet.logger import get_logger
from webwallet.models.portfolio import (
    Asset,
    Frequency,
    InvestmentPortfolio,
    Subscription,
    WalletType,
    generate_id,
)

log = get_logger(__name__)

DEFAULT_PORTFOLIO_ID = "main_portfolio"


class PortfolioStore:
    """Load/save the portfolio and run read-modify-write mutations on it.

    Every public call is bounded by ``timeout`` seconds (the store default when
    omitted). Mutations are serialised by a per-store lock and guarded across
    processes by the document ``version``: a save that loses the version check
    is reloaded and retried up to ``max_retries`` times.
    """

    def __init__(
        self,
        documents: DocumentStore,
        portfolio_id: str = DEFAULT_PORTFOLIO_ID,
        timeout: float = 5.0,
        max_retries: int = 3,
    ):
        self.documents = documents
        self.portfolio_id = portfolio_id
        self.timeout = timeout
        self.max_retries = max_retries
        self._lock = asyncio.Lock()

    # ---------- plumbing ----------

    async def _run(self, coro, timeout: Optional[float], operation: str):
        deadline = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(coro, timeout=deadline)
        except asyncio.TimeoutError as e:
            raise StorageTimeoutError(f"{operation} exceeded its {deadline:.2f}s deadline") from e

    async def _load(self) -> InvestmentPortfolio:
        document = await self.documents.get(self.portfolio_id)
        if document is None:
            log.info("No existing portfolio found. Creating a new one.")
            return InvestmentPortfolio()
        try:
            return InvestmentPortfolio.from_document(document)
        except ValidationError as e:
            raise StorageError(f"failed to decode portfolio {self.portfolio_id!r}: {e}") from e

    async def _save(self, portfolio: InvestmentPortfolio) -> None:
        document = portfolio.to_document()
        document["version"] = portfolio.version + 1
        await self.documents.upsert(
            self.portfolio_id, document, expected_version=portfolio.version
        )
        portfolio.version += 1

    async def _mutate(
        self,
        operation: str,
        mutator: Callable[[InvestmentPortfolio], Optional[bool]],
        timeout: Optional[float] = None,
    ) -> InvestmentPortfolio:
        """Load, apply ``mutator``, recompute and save.

        Errors raised by the mutator propagate before anything is written.
        A mutator returning ``False`` means "nothing to change": the loaded
        portfolio is returned without a save.
        """
        async def attempts() -> InvestmentPortfolio:
            async with self._lock:
                for attempt in range(1, self.max_retries + 1):
                    portfolio = await self._load()
                    if mutator(portfolio) is False:
                        return portfolio
                    portfolio.recompute_totals()
                    try:
                        await self._save(portfolio)
                    except WriteConflictError:
                        log.warning(
                            "%s: version conflict (attempt %d/%d), reloading",
                            operation, attempt, self.max_retries,
                        )
                        continue
                    log.info("%s: saved portfolio version %d", operation, portfolio.version)
                    return portfolio
                raise ConcurrentModificationError(
                    f"{operation} failed: portfolio kept changing underneath ({self.max_retries} attempts)"
                )

        return await self._run(attempts(), timeout, operation)

    # ---------- load / save ----------

    async def load(self, timeout: Optional[float] = None) -> InvestmentPortfolio:
        return await self._run(self._load(), timeout, "load")

    async def save(self, portfolio: InvestmentPortfolio, timeout: Optional[float] = None) -> None:
        """Persist ``portfolio`` as a whole.

        Raises ConcurrentModificationError if the stored document moved on
        since ``portfolio`` was loaded.
        """
        async def save_once() -> None:
            async with self._lock:
                try:
                    await self._save(portfolio)
                except WriteConflictError as e:
                    raise ConcurrentModificationError(
                        f"portfolio {self.portfolio_id!r} was modified since it was loaded"
                    ) from e

        await self._run(save_once(), timeout, "save")

    # ---------- assets ----------

    async def add_asset(self, asset: Asset, timeout: Optional[float] = None) -> InvestmentPortfolio:
        return await self._mutate("add_asset", lambda p: p.add_asset(asset), timeout)

    async def remove_asset(self, asset_id: str, timeout: Optional[float] = None) -> InvestmentPortfolio:
        return await self._mutate("remove_asset", lambda p: p.remove_asset(asset_id), timeout)

    async def update_asset(
        self,
        asset_id: str,
        additional_quantity: float,
        new_purchase_price: float,
        timeout: Optional[float] = None,
    ) -> InvestmentPortfolio:
        def buy(p: InvestmentPortfolio) -> None:
            p.find_asset(asset_id).apply_purchase(additional_quantity, new_purchase_price)

        return await self._mutate("update_asset", buy, timeout)

    async def update_asset_current_price(
        self, asset_id: str, new_price: float, timeout: Optional[float] = None
    ) -> InvestmentPortfolio:
        def reprice(p: InvestmentPortfolio) -> None:
            p.find_asset(asset_id).current_price = new_price

        return await self._mutate("update_asset_current_price", reprice, timeout)

    async def update_asset_wallet_type(
        self, asset_id: str, wallet_type: Union[str, WalletType], timeout: Optional[float] = None
    ) -> InvestmentPortfolio:
        checked = WalletType.parse(wallet_type)

        def relabel(p: InvestmentPortfolio) -> None:
            p.find_asset(asset_id).wallet_type = checked.value

        return await self._mutate("update_asset_wallet_type", relabel, timeout)

    # ---------- subscriptions ----------

    async def add_subscription(
        self, subscription: Subscription, timeout: Optional[float] = None
    ) -> InvestmentPortfolio:
        return await self._mutate(
            "add_subscription", lambda p: p.add_subscription(subscription), timeout
        )

    async def remove_subscription(
        self, subscription_id: str, timeout: Optional[float] = None
    ) -> InvestmentPortfolio:
        return await self._mutate(
            "remove_subscription", lambda p: p.remove_subscription(subscription_id), timeout
        )

    async def update_subscription(
        self, subscription: Subscription, timeout: Optional[float] = None
    ) -> InvestmentPortfolio:
        return await self._mutate(
            "update_subscription", lambda p: p.replace_subscription(subscription), timeout
        )

    # ---------- sample data ----------

    async def seed_sample_data(self, timeout: Optional[float] = None) -> InvestmentPortfolio:
        """Populate an empty portfolio with one asset and one monthly subscription"""
        def seed(p: InvestmentPortfolio) -> Optional[bool]:
            if not p.is_empty():
                return False
            log.info("Portfolio is empty, populating with sample data...")
            p.add_asset(Asset(
                id=generate_id(),
                name="Sample shares",
                symbol="DBG",
                type="Stocks",
                quantity=10.0,
                avg_cost=100.0,
                wallet_type=WalletType.LONG_TERM.value,
            ))
            p.add_subscription(Subscription(
                id=generate_id(),
                name="Sample monthly subscription",
                cost=50.0,
                frequency=Frequency.MONTHLY,
                next_due=datetime.now(timezone.utc) + timedelta(days=30),
            ))
            return None

        return await self._mutate("seed_sample_data", seed, timeout)
