"""
Core constants used across the application. Keep these simple and documented.
"""

# Redis key templates
RECOMMENDATION_CACHE_KEY: str = "reco:cache:{key}"
REROLL_USAGE_KEY: str = "reco:reroll:{key}:{date}"
SEEN_TITLES_KEY: str = "reco:seen:{key}"
HISTORY_KEY: str = "reco:history:{user_id}"

# A result set is always a primary pick plus two alternatives
RESULT_SIZE: int = 3

# Bounded excerpt of raw model output kept for diagnostics
RAW_EXCERPT_CHARS: int = 2000

DEFAULT_USER_ID: str = "anon"
UNKNOWN_IP: str = "unknown"
