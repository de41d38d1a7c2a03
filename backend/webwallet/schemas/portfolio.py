from __future__ import annotations
from datetime import date, datetime, time, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from webwallet.models.portfolio import (
    Asset,
    Frequency,
    InvestmentPortfolio,
    Subscription,
    WalletType,
    format_currency,
)


def _due_datetime(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


class AssetIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    symbol: str = Field(default="", max_length=16)
    type: str = Field(default="", max_length=40)
    quantity: float = Field(..., ge=0, allow_inf_nan=False)
    avg_cost: float = Field(..., ge=0, allow_inf_nan=False)
    current_price: float = Field(default=0.0, ge=0, allow_inf_nan=False)  # 0 means "value at cost"
    wallet_type: Optional[WalletType] = None

    def to_asset(self, asset_id: str) -> Asset:
        return Asset(
            id=asset_id,
            name=self.name,
            symbol=self.symbol.strip().upper(),
            type=self.type,
            quantity=self.quantity,
            avg_cost=self.avg_cost,
            current_price=self.current_price,
            wallet_type=self.wallet_type.value if self.wallet_type else "",
        )


class AssetPurchaseIn(BaseModel):
    additional_quantity: float = Field(..., allow_inf_nan=False)
    new_purchase_price: float = Field(..., ge=0, allow_inf_nan=False)


class AssetPriceIn(BaseModel):
    current_price: float = Field(..., ge=0, allow_inf_nan=False)


class AssetWalletTypeIn(BaseModel):
    wallet_type: WalletType


class SubscriptionIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    cost: float = Field(..., ge=0, allow_inf_nan=False)
    frequency: Frequency
    next_due: date

    @field_validator("frequency")
    @classmethod
    def _supported_frequency(cls, v: Frequency) -> Frequency:
        if v is Frequency.OTHER:
            raise ValueError("frequency must be 'monthly' or 'yearly'")
        return v

    def to_subscription(self, subscription_id: str) -> Subscription:
        return Subscription(
            id=subscription_id,
            name=self.name,
            cost=self.cost,
            frequency=self.frequency,
            next_due=_due_datetime(self.next_due),
        )


class AssetOut(BaseModel):
    id: str
    name: str
    symbol: str
    type: str
    quantity: float
    avg_cost: float
    current_price: float
    wallet_type: str
    market_value: float
    profit_loss: float


class SubscriptionOut(BaseModel):
    id: str
    name: str
    cost: float
    frequency: str
    next_due: Optional[datetime]
    monthly_cost: float


class PortfolioOut(BaseModel):
    assets: List[AssetOut]
    subscriptions: List[SubscriptionOut]
    total_value: float
    total_cost: float
    monthly_subscription_cost: float
    profit_loss: float
    profit_loss_percentage: float
    formatted: dict
    version: int

    @classmethod
    def from_portfolio(cls, portfolio: InvestmentPortfolio, currency: str = "PLN") -> "PortfolioOut":
        profit_loss = portfolio.get_profit_loss()
        return cls(
            assets=[
                AssetOut(
                    **a.model_dump(),
                    market_value=a.market_value(),
                    profit_loss=a.market_value() - a.cost_basis(),
                )
                for a in portfolio.assets
            ],
            subscriptions=[
                SubscriptionOut(
                    id=s.id,
                    name=s.name,
                    cost=s.cost,
                    frequency=s.frequency.value,
                    next_due=s.next_due,
                    monthly_cost=s.monthly_cost(),
                )
                for s in portfolio.subscriptions
            ],
            total_value=portfolio.get_total_value(),
            total_cost=portfolio.get_total_cost(),
            monthly_subscription_cost=portfolio.get_monthly_subscription_cost(),
            profit_loss=profit_loss,
            profit_loss_percentage=portfolio.get_profit_loss_percentage(),
            formatted={
                "total_value": format_currency(portfolio.get_total_value(), currency),
                "total_cost": format_currency(portfolio.get_total_cost(), currency),
                "monthly_subscription_cost": format_currency(
                    portfolio.get_monthly_subscription_cost(), currency
                ),
                "profit_loss": format_currency(profit_loss, currency),
            },
            version=portfolio.version,
        )
