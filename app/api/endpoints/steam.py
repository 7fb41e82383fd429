from fastapi import APIRouter, Depends, Query

from app.api.deps import get_library_service
from app.core.exceptions import InputValidationError
from app.services.steam.service import SteamLibraryService

router = APIRouter(prefix="/steam", tags=["steam"])


@router.get("/owned")
async def get_owned_games(
    steamid: str | None = Query(default=None),
    library: SteamLibraryService = Depends(get_library_service),
) -> dict:
    """Raw owned games of a Steam account (playtime in minutes)."""
    if not steamid:
        raise InputValidationError("Missing steamid")
    return {"data": await library.fetch_owned_games(steamid.strip())}


@router.get("/achievements")
async def get_achievements(
    steamid: str | None = Query(default=None),
    appid: str | None = Query(default=None),
    library: SteamLibraryService = Depends(get_library_service),
) -> dict:
    if not steamid or not appid:
        raise InputValidationError("Missing steamid/appid")
    if not appid.strip().isdigit():
        raise InputValidationError("appid must be numeric")
    return {"data": await library.fetch_achievements(steamid.strip(), int(appid))}
