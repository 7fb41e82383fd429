"""
Affinity profile - additive, transparent design.

Turns a player's most played games and achievement completion into weighted
tag / genre / category maps. Nothing here is persisted.
"""

from app.services.profile.builder import ProfileBuilder, top_played

__all__ = [
    "ProfileBuilder",
    "top_played",
]
