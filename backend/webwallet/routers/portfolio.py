# backend/webwallet/routers/portfolio.py
"""Portfolio endpoints: assets and subscriptions"""

from fastapi import APIRouter, Depends, status

from webwallet.api.deps import get_portfolio_store
from webwallet.core.config import settings
from webwallet.db.repositories import PortfolioStore
from webwallet.logger import get_logger
from webwallet.models.portfolio import generate_id
from webwallet.schemas.portfolio import (
    AssetIn,
    AssetPriceIn,
    AssetPurchaseIn,
    AssetWalletTypeIn,
    PortfolioOut,
    SubscriptionIn,
)

log = get_logger(__name__)
router = APIRouter(prefix="/portfolio", tags=["Portfolio"])


def _out(portfolio) -> PortfolioOut:
    return PortfolioOut.from_portfolio(portfolio, currency=settings.CURRENCY)


# ========== PORTFOLIO ==========

@router.get("", response_model=PortfolioOut)
async def get_portfolio(store: PortfolioStore = Depends(get_portfolio_store)):
    """Current portfolio with raw and formatted totals"""
    if settings.SEED_SAMPLE_DATA:
        portfolio = await store.seed_sample_data()
    else:
        portfolio = await store.load()
    return _out(portfolio)


# ========== ASSETS ==========

@router.post("/assets", response_model=PortfolioOut, status_code=status.HTTP_201_CREATED)
async def add_asset(body: AssetIn, store: PortfolioStore = Depends(get_portfolio_store)):
    asset = body.to_asset(generate_id())
    portfolio = await store.add_asset(asset)
    log.info("Asset added: %s (%s) x %g", asset.name, asset.id, asset.quantity)
    return _out(portfolio)


@router.delete("/assets/{asset_id}", response_model=PortfolioOut)
async def delete_asset(asset_id: str, store: PortfolioStore = Depends(get_portfolio_store)):
    portfolio = await store.remove_asset(asset_id)
    log.info("Asset removed: %s", asset_id)
    return _out(portfolio)


@router.patch("/assets/{asset_id}", response_model=PortfolioOut)
async def buy_more(
    asset_id: str,
    body: AssetPurchaseIn,
    store: PortfolioStore = Depends(get_portfolio_store),
):
    """Add units at a purchase price and re-weight the average cost"""
    portfolio = await store.update_asset(asset_id, body.additional_quantity, body.new_purchase_price)
    return _out(portfolio)


@router.put("/assets/{asset_id}/price", response_model=PortfolioOut)
async def update_price(
    asset_id: str,
    body: AssetPriceIn,
    store: PortfolioStore = Depends(get_portfolio_store),
):
    portfolio = await store.update_asset_current_price(asset_id, body.current_price)
    return _out(portfolio)


@router.put("/assets/{asset_id}/wallet-type", response_model=PortfolioOut)
async def update_wallet_type(
    asset_id: str,
    body: AssetWalletTypeIn,
    store: PortfolioStore = Depends(get_portfolio_store),
):
    portfolio = await store.update_asset_wallet_type(asset_id, body.wallet_type)
    return _out(portfolio)


# ========== SUBSCRIPTIONS ==========

@router.post("/subscriptions", response_model=PortfolioOut, status_code=status.HTTP_201_CREATED)
async def add_subscription(body: SubscriptionIn, store: PortfolioStore = Depends(get_portfolio_store)):
    subscription = body.to_subscription(generate_id())
    portfolio = await store.add_subscription(subscription)
    log.info("Subscription added: %s (%s)", subscription.name, subscription.id)
    return _out(portfolio)


@router.delete("/subscriptions/{subscription_id}", response_model=PortfolioOut)
async def delete_subscription(
    subscription_id: str,
    store: PortfolioStore = Depends(get_portfolio_store),
):
    portfolio = await store.remove_subscription(subscription_id)
    log.info("Subscription removed: %s", subscription_id)
    return _out(portfolio)


@router.put("/subscriptions/{subscription_id}", response_model=PortfolioOut)
async def update_subscription(
    subscription_id: str,
    body: SubscriptionIn,
    store: PortfolioStore = Depends(get_portfolio_store),
):
    """Replace the whole subscription record"""
    portfolio = await store.update_subscription(body.to_subscription(subscription_id))
    return _out(portfolio)
