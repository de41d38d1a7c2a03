# backend/webwallet/db/__init__.py
"""Database package - single portfolio document over MongoDB"""

from .documents import DocumentStore, InMemoryDocumentStore
from .mongo import (
    connect_to_mongo,
    close_mongo_connection,
    MongoDocumentStore,
)
from .repositories import PortfolioStore, DEFAULT_PORTFOLIO_ID

__all__ = [
    # Document stores
    "DocumentStore",
    "InMemoryDocumentStore",
    "MongoDocumentStore",

    # Connection management
    "connect_to_mongo",
    "close_mongo_connection",

    # Repositories
    "PortfolioStore",
    "DEFAULT_PORTFOLIO_ID",
]
