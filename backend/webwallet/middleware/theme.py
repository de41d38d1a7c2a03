# backend/webwallet/middleware/theme.py
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

THEME_COOKIE = "theme"
THEMES = ("light", "dark")


class ThemeMiddleware(BaseHTTPMiddleware):
    """Reads the ``theme`` cookie into ``request.state.theme`` (light unless the cookie says dark)"""

    async def dispatch(self, request: Request, call_next):
        theme = request.cookies.get(THEME_COOKIE, "light")
        request.state.theme = theme if theme in THEMES else "light"
        return await call_next(request)
