from .portfolio import (
    AssetIn,
    AssetPurchaseIn,
    AssetPriceIn,
    AssetWalletTypeIn,
    SubscriptionIn,
    AssetOut,
    SubscriptionOut,
    PortfolioOut,
)

__all__ = [
    "AssetIn",
    "AssetPurchaseIn",
    "AssetPriceIn",
    "AssetWalletTypeIn",
    "SubscriptionIn",
    "AssetOut",
    "SubscriptionOut",
    "PortfolioOut",
]
