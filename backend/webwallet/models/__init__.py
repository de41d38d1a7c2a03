from .portfolio import (
    Asset,
    Subscription,
    Frequency,
    WalletType,
    InvestmentPortfolio,
    format_currency,
    generate_id,
)

__all__ = [
    "Asset",
    "Subscription",
    "Frequency",
    "WalletType",
    "InvestmentPortfolio",
    "format_currency",
    "generate_id",
]
