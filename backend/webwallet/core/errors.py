# backend/webwallet/core/errors.py
"""Exception taxonomy for portfolio operations."""


class PortfolioError(Exception):
    """Base class for every error raised by the portfolio core."""


# --- Not found ---


class NotFoundError(PortfolioError):
    """Requested element is absent at mutation time. Nothing was changed."""


class AssetNotFoundError(NotFoundError):
    def __init__(self, asset_id: str):
        super().__init__(f"asset with id {asset_id!r} not found")
        self.asset_id = asset_id


class SubscriptionNotFoundError(NotFoundError):
    def __init__(self, subscription_id: str):
        super().__init__(f"subscription with id {subscription_id!r} not found")
        self.subscription_id = subscription_id


# --- Input ---


class InvalidQuantityError(PortfolioError):
    """Resulting asset quantity would be zero or negative."""


class InvalidWalletTypeError(PortfolioError):
    def __init__(self, wallet_type: str, allowed):
        super().__init__(
            f"invalid wallet type {wallet_type!r}, expected one of: {', '.join(allowed)}"
        )
        self.wallet_type = wallet_type
        self.allowed = list(allowed)


# --- Storage ---


class StorageError(PortfolioError):
    "Connectivity, decode or write failure in the document store."


class StorageTimeoutError(StorageError):
    """Operation exceeded its deadline and was aborted."""


class WriteConflictError(StorageError):
    """Stored document version did not match the expected version."""


class ConcurrentModificationError(StorageError):
    """
    Raised when a mutation keeps losing the optimistic version check
    after all retries.
    """
