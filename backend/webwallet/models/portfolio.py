# backend/webwallet/models/portfolio.py
"""Portfolio aggregate: assets, subscriptions and derived totals.

Everything here is in-memory. Persistence lives in ``webwallet.db``.
"""

from __future__ import annotations
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from webwallet.core.errors import (
    AssetNotFoundError,
    InvalidQuantityError,
    InvalidWalletTypeError,
    SubscriptionNotFoundError,
)

# labels written by the first version of the app
_LEGACY_FREQUENCY_LABELS = {
    "miesięcznie": "monthly",
    "rocznie": "yearly",
}


class Frequency(str, Enum):
    """Billing period of a subscription."""
    MONTHLY = "monthly"
    YEARLY = "yearly"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            label = value.strip().lower()
            label = _LEGACY_FREQUENCY_LABELS.get(label, label)
            for member in cls:
                if member.value == label:
                    return member
        return cls.OTHER

    def monthly_cost(self, cost: float) -> float:
        if self is Frequency.MONTHLY:
            return cost
        if self is Frequency.YEARLY:
            return cost / 12.0
        # unsupported periods contribute nothing
        return 0.0


class WalletType(str, Enum):
    FINANCIAL_CUSHION = "financial_cushion"
    LONG_TERM = "long_term"
    SHORT_TERM = "short_term"

    @classmethod
    def allowed(cls) -> List[str]:
        return [m.value for m in cls]

    @classmethod
    def parse(cls, value) -> "WalletType":
        """Validate a raw label, raising InvalidWalletTypeError for anything unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise InvalidWalletTypeError(str(value), cls.allowed()) from None


class DocumentModel(BaseModel):
    """Base for everything stored inside the portfolio document (camelCase keys)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Asset(DocumentModel):
    """One holding"""
    id: str
    name: str = ""
    symbol: str = ""
    type: str = ""
    quantity: float = 0.0
    avg_cost: float = 0.0
    current_price: float = 0.0
    wallet_type: str = ""

    def market_value(self) -> float:
        return self.quantity * self.current_price

    def cost_basis(self) -> float:
        return self.quantity * self.avg_cost

    def apply_purchase(self, additional_quantity: float, purchase_price: float) -> None:
        """Add units bought at ``purchase_price`` and re-weight the average cost.

        ``current_price`` is left alone: only the cost basis changes.
        """
        new_quantity = self.quantity + additional_quantity
        if new_quantity <= 0:
            raise InvalidQuantityError(
                f"asset {self.id!r} would end up with quantity {new_quantity:g}"
            )
        new_avg_cost = (
            self.quantity * self.avg_cost + additional_quantity * purchase_price
        ) / new_quantity
        if new_avg_cost < 0:
            raise InvalidQuantityError(
                f"asset {self.id!r} would end up with average cost {new_avg_cost:g}"
            )
        self.avg_cost = new_avg_cost
        self.quantity = new_quantity


class Subscription(DocumentModel):
    """One recurring cost"""
    id: str
    name: str = ""
    cost: float = 0.0
    frequency: Frequency = Frequency.MONTHLY
    next_due: Optional[datetime] = None

    @field_validator("frequency", mode="before")
    @classmethod
    def _coerce_frequency(cls, v):
        return v if isinstance(v, Frequency) else Frequency(v)

    @field_validator("next_due")
    @classmethod
    def _ensure_aware(cls, v):
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_serializer("frequency")
    def _serialize_frequency(self, frequency: Frequency) -> str:
        return frequency.value

    def monthly_cost(self) -> float:
        return self.frequency.monthly_cost(self.cost)


class InvestmentPortfolio(DocumentModel):
    """The single portfolio document.

    ``total_value``, ``total_cost`` and ``monthly_subscription_cost`` are
    derived. They are recomputed on construction (so stored values are never
    trusted) and before every getter returns.
    """
    assets: List[Asset] = Field(default_factory=list)
    subscriptions: List[Subscription] = Field(default_factory=list)
    total_value: float = 0.0
    total_cost: float = 0.0
    monthly_subscription_cost: float = 0.0
    version: int = 0  # optimistic concurrency counter, bumped on every save

    @model_validator(mode="after")
    def _recompute_after_load(self):
        self.recompute_totals()
        return self

    # ---------- mutation ----------

    def add_asset(self, asset: Asset) -> None:
        # no market price yet: value the asset at cost
        if asset.current_price == 0:
            asset.current_price = asset.avg_cost
        self.assets.append(asset)
        self.recompute_totals()

    def add_subscription(self, subscription: Subscription) -> None:
        self.subscriptions.append(subscription)
        self.recompute_totals()

    def remove_asset(self, asset_id: str) -> Asset:
        asset = self.find_asset(asset_id)
        self.assets = [a for a in self.assets if a.id != asset_id]
        self.recompute_totals()
        return asset

    def remove_subscription(self, subscription_id: str) -> Subscription:
        subscription = self.find_subscription(subscription_id)
        self.subscriptions = [s for s in self.subscriptions if s.id != subscription_id]
        self.recompute_totals()
        return subscription

    def replace_subscription(self, updated: Subscription) -> None:
        for i, s in enumerate(self.subscriptions):
            if s.id == updated.id:
                self.subscriptions[i] = updated
                self.recompute_totals()
                return
        raise SubscriptionNotFoundError(updated.id)

    # ---------- lookup ----------

    def find_asset(self, asset_id: str) -> Asset:
        for a in self.assets:
            if a.id == asset_id:
                return a
        raise AssetNotFoundError(asset_id)

    def find_subscription(self, subscription_id: str) -> Subscription:
        for s in self.subscriptions:
            if s.id == subscription_id:
                return s
        raise SubscriptionNotFoundError(subscription_id)

    def is_empty(self) -> bool:
        return not self.assets and not self.subscriptions

    # ---------- totals ----------

    def recompute_totals(self) -> None:
        self.total_value = 0.0
        self.total_cost = 0.0
        self.monthly_subscription_cost = 0.0

        for a in self.assets:
            self.total_value += a.market_value()
            self.total_cost += a.cost_basis()

        for s in self.subscriptions:
            self.monthly_subscription_cost += s.monthly_cost()

    def get_total_value(self) -> float:
        self.recompute_totals()
        return self.total_value

    def get_total_cost(self) -> float:
        self.recompute_totals()
        return self.total_cost

    def get_monthly_subscription_cost(self) -> float:
        self.recompute_totals()
        return self.monthly_subscription_cost

    def get_profit_loss(self) -> float:
        return self.get_total_value() - self.get_total_cost()

    def get_profit_loss_percentage(self) -> float:
        total_cost = self.get_total_cost()
        if total_cost == 0:
            return 0.0
        return (self.get_profit_loss() / total_cost) * 100.0

    # ---------- persistence shape ----------

    def to_document(self) -> dict:
        self.recompute_totals()
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, document: dict) -> "InvestmentPortfolio":
        return cls.model_validate(document)


def format_currency(amount: float, currency: str = "PLN") -> str:
    return f"{amount:.2f} {currency}"


def generate_id() -> str:
    return str(uuid.uuid4())
