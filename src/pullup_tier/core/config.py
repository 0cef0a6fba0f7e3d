"""
Configuration constants for the pull-up tier score model.

All scoring parameters are centralized here. Changing any value in the
TIER SCORE sections changes stored scores, so TIER_LOGIC_VERSION must be
bumped together with it.
"""

from typing import Final

# =============================================================================
# ALGORITHM VERSION
# =============================================================================

TIER_LOGIC_VERSION: Final[int] = 1  # 2024-07-17

# =============================================================================
# TIER SCORE: PACE CORRECTNESS (step 2)
# =============================================================================

PACE_MEAN_LOW: Final[float] = 36.0  # Inclusive lower bound of the correct tempo band
PACE_MEAN_HIGH: Final[float] = 44.0  # Inclusive upper bound
PACE_CORRECT_BONUS_FRACTION: Final[float] = 0.2

# =============================================================================
# TIER SCORE: PACE CONSISTENCY (step 3)
# =============================================================================

TEMPO_STDDEV_SCALE: Final[float] = 0.1  # Applied to the population stddev
CONSISTENCY_BASE_FRACTION: Final[float] = 0.2
CONSISTENCY_STDDEV_PENALTY: Final[float] = 0.2
CONSISTENCY_BOOST: Final[float] = 1.5
CONSISTENCY_DAMPING: Final[float] = 0.5

# =============================================================================
# TIER SCORE: NEGATIVE RATIO (step 4)
# =============================================================================

NEGATIVE_RATIO_MIN: Final[float] = 0.4
NEGATIVE_RATIO_MAX: Final[float] = 0.7
NEGATIVE_RATIO_SLOPE: Final[float] = 2 / 3

# =============================================================================
# AGGREGATION
# =============================================================================

PULLUP_WORKOUT_TYPE: Final[str] = "pullup"
WORKOUT_SUB_TYPES: Final[tuple[str, ...]] = ("routine", "test", "free", "custom")
UNSCORED_SENTINEL: Final[int] = -1  # pullupTierScore when no log is scoreable

# =============================================================================
# STORE LAYOUT
# =============================================================================

USERS_COLLECTION: Final[str] = "users"
WORKOUT_LOGS_SUBCOLLECTION: Final[str] = "workout_logs"
RANKINGS_COLLECTION: Final[str] = "rankings"
COUNTRY_RANKINGS_DOC: Final[str] = "country_rankings"
MAX_IDS_PER_LOOKUP: Final[int] = 10  # Upper bound for a document-id set lookup
DEFAULT_PAGE_SIZE: Final[int] = 500
