from typing import Final

# How many of the most played games feed the profile
PROFILE_TOP_PLAYED: Final[int] = 15

# Completion boost: players who finished most achievements clearly liked the game
COMPLETION_BOOST_THRESHOLD: Final[int] = 70  # percent
COMPLETION_BOOST: Final[float] = 1.5

# Feature Weights (relative importance of different feature types)
FEATURE_WEIGHT_TAG: Final[float] = 1.0
FEATURE_WEIGHT_GENRE: Final[float] = 0.8
FEATURE_WEIGHT_CATEGORY: Final[float] = 0.6

# Size of the insertion-ordered top tag list used for overlap
TOP_TAGS_LIMIT: Final[int] = 8
