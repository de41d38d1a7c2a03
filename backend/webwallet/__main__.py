import uvicorn

from webwallet.core.config import settings


def main():
    uvicorn.run(
        "webwallet.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
