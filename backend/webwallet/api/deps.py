# backend/webwallet/api/deps.py
"""API dependencies"""

from fastapi import HTTPException, Request, status

from webwallet.db.repositories import PortfolioStore
from webwallet.logger import get_logger

log = get_logger(__name__)


def get_portfolio_store(request: Request) -> PortfolioStore:
    """Store created by the app lifespan"""
    store = getattr(request.app.state, "portfolio_store", None)
    if store is None:
        log.error("Portfolio store requested before startup completed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage is not ready",
        )
    return store


def get_theme(request: Request) -> str:
    return getattr(request.state, "theme", "light")
