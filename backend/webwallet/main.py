# backend/webwallet/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from webwallet import __version__
from webwallet.core.config import settings
from webwallet.core.errors import (
    ConcurrentModificationError,
    InvalidQuantityError,
    InvalidWalletTypeError,
    NotFoundError,
    PortfolioError,
    StorageError,
    StorageTimeoutError,
)
from webwallet.db import (
    InMemoryDocumentStore,
    MongoDocumentStore,
    PortfolioStore,
    close_mongo_connection,
    connect_to_mongo,
)
from webwallet.logger import get_logger
from webwallet.middleware import RequestLoggerMiddleware, ThemeMiddleware
from webwallet.routers import portfolio, preferences, visualizations

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the storage connection once and share one PortfolioStore"""
    # ========== STARTUP ==========
    log.info("Starting %s (storage: %s)...", settings.APP_NAME, settings.STORAGE_BACKEND)

    if settings.STORAGE_BACKEND == "memory":
        documents = InMemoryDocumentStore()
        log.warning("In-memory storage selected: data is lost on restart")
    else:
        try:
            db = await connect_to_mongo()
        except StorageError as e:
            log.error(f"Failed to connect to MongoDB: {e}")
            raise
        documents = MongoDocumentStore(db[settings.MONGO_COLLECTION])

    app.state.documents = documents
    app.state.portfolio_store = PortfolioStore(
        documents,
        portfolio_id=settings.PORTFOLIO_ID,
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
        max_retries=settings.MAX_WRITE_RETRIES,
    )
    log.info("Application startup complete!")

    yield  # Application runs here

    # ========== SHUTDOWN ==========
    log.info("Shutting down %s...", settings.APP_NAME)
    app.state.portfolio_store = None

    if settings.STORAGE_BACKEND == "mongo":
        try:
            await close_mongo_connection()
        except PyMongoError as e:
            log.error(f"Error closing MongoDB connection: {e}")

    log.info("Application shutdown complete!")


app = FastAPI(
    title=settings.APP_NAME,
    version=__version__,
    lifespan=lifespan,
)

# Middlewares
app.add_middleware(ThemeMiddleware)
app.add_middleware(RequestLoggerMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ========== ERRORS ==========
# first match wins, so subclasses come before StorageError
_ERROR_STATUS = [
    (NotFoundError, 404),
    (InvalidQuantityError, 400),
    (InvalidWalletTypeError, 422),
    (ConcurrentModificationError, 409),
    (StorageTimeoutError, 504),
    (StorageError, 503),
]


@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError):
    status_code = next((code for exc_type, code in _ERROR_STATUS if isinstance(exc, exc_type)), 500)
    if status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        log.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


# ========== ROUTERS ==========
app.include_router(portfolio.router, prefix=settings.API_PREFIX)
app.include_router(visualizations.router, prefix=settings.API_PREFIX)
app.include_router(preferences.router, prefix=settings.API_PREFIX)


# ========== ROOT ENDPOINTS ==========
@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": __version__,
        "status": "running",
        "storage": settings.STORAGE_BACKEND,
        "api_endpoints": {
            "portfolio": f"{settings.API_PREFIX}/portfolio",
            "visualizations": f"{settings.API_PREFIX}/visualizations/data",
            "theme": f"{settings.API_PREFIX}/preferences/theme",
        },
    }


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint for monitoring"""
    health_status = {"status": "healthy", "database": "unknown"}

    documents = getattr(request.app.state, "documents", None)
    if documents is not None and await documents.ping():
        health_status["database"] = "healthy"
    else:
        health_status["database"] = "unhealthy"
        health_status["status"] = "degraded"

    return health_status
