from .request_logger import RequestLoggerMiddleware
from .theme import ThemeMiddleware, THEME_COOKIE

__all__ = ["RequestLoggerMiddleware", "ThemeMiddleware", "THEME_COOKIE"]
