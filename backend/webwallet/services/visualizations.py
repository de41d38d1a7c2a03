# backend/webwallet/services/visualizations.py
from __future__ import annotations
from typing import Callable, Dict, List

from webwallet.models.portfolio import Asset, InvestmentPortfolio

UNASSIGNED = "unassigned"


def _group_values(assets: List[Asset], key: Callable[[Asset], str]) -> Dict[str, float]:
    # insertion order follows first appearance in the portfolio
    grouped: Dict[str, float] = {}
    for a in assets:
        label = key(a) or UNASSIGNED
        grouped[label] = grouped.get(label, 0.0) + a.market_value()
    return grouped


def _pie(grouped: Dict[str, float]) -> Dict[str, object]:
    """
    Pie data in the shape chart front ends expect:
    {"labels": [...], "values": [...], "weights": [... percent of total ...]}
    """
    total = sum(grouped.values())
    labels = list(grouped.keys())
    values = [round(v, 2) for v in grouped.values()]
    weights = [round(v / total * 100, 2) if total > 0 else 0.0 for v in grouped.values()]
    return {"labels": labels, "values": values, "weights": weights}


def build_composition_charts(portfolio: InvestmentPortfolio) -> Dict[str, Dict[str, object]]:
    """Portfolio composition by asset, by asset type and by wallet type"""
    assets = portfolio.assets
    return {
        "by_asset": _pie(_group_values(assets, lambda a: a.symbol or a.name)),
        "by_type": _pie(_group_values(assets, lambda a: a.type)),
        "by_wallet_type": _pie(_group_values(assets, lambda a: a.wallet_type)),
        "total_value": round(portfolio.get_total_value(), 2),
    }
