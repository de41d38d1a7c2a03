# backend/webwallet/routers/visualizations.py
from fastapi import APIRouter, Depends

from webwallet.api.deps import get_portfolio_store
from webwallet.db.repositories import PortfolioStore
from webwallet.services.visualizations import build_composition_charts

router = APIRouter(prefix="/visualizations", tags=["visualizations"])


@router.get("/data")
async def visualization_data(store: PortfolioStore = Depends(get_portfolio_store)):
    """
    Pie chart data for portfolio composition.
    Response:
    {
      "by_asset":       {"labels": ["AAPL", ...], "values": [1890.0, ...], "weights": [63.0, ...]},
      "by_type":        {...},
      "by_wallet_type": {...},
      "total_value": 3000.0
    }
    """
    portfolio = await store.load()
    return build_composition_charts(portfolio)
