# backend/webwallet/routers/preferences.py
from fastapi import APIRouter, Depends, Response

from webwallet.api.deps import get_theme
from webwallet.middleware.theme import THEME_COOKIE

router = APIRouter(prefix="/preferences", tags=["preferences"])

ONE_YEAR = 365 * 24 * 3600


@router.get("/theme")
async def current_theme(theme: str = Depends(get_theme)):
    return {"theme": theme}


@router.post("/theme/toggle")
async def toggle_theme(response: Response, theme: str = Depends(get_theme)):
    new_theme = "light" if theme == "dark" else "dark"
    response.set_cookie(THEME_COOKIE, new_theme, max_age=ONE_YEAR, httponly=True, samesite="lax")
    return {"theme": new_theme}
