from .client import SteamClient
from .service import SteamLibraryService, library_service, summarize_achievements

__all__ = [
    "SteamClient",
    "SteamLibraryService",
    "library_service",
    "summarize_achievements",
]
