"""
Constants for person_crud.

Connection defaults and the Person field bounds live here so the schema,
the configuration layer and the tests agree on the same numbers.
"""

from typing import Final

# ============================================================================
# DATABASE CONSTANTS
# ============================================================================

DEFAULT_DB_NAME: Final[str] = "person_crud"
"""Database used when neither DB_NAME nor the URI path names one."""

PERSON_COLLECTION: Final[str] = "people"
"""Collection holding Person documents."""

DEFAULT_APP_NAME: Final[str] = "person_crud"
"""Application name reported to the server in the handshake."""

# Connection pool defaults
DEFAULT_MAX_POOL_SIZE: Final[int] = 10
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 5
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

DEFAULT_SOCKET_TIMEOUT_MS: Final[int] = 45000
"""Close sockets after this many milliseconds of inactivity."""

MIN_TIMEOUT_MS: Final[int] = 1000
"""Smallest accepted value for any connection-level timeout."""

# ============================================================================
# PERSON SCHEMA CONSTANTS
# ============================================================================

NAME_MIN_LENGTH: Final[int] = 2
NAME_MAX_LENGTH: Final[int] = 100
NAME_PATTERN: Final[str] = r"^[a-zA-Z\s]{2,100}$"

AGE_MIN: Final[int] = 0
AGE_MAX: Final[int] = 120

FOOD_MIN_LENGTH: Final[int] = 2
FOOD_MAX_LENGTH: Final[int] = 50
MAX_FAVORITE_FOODS: Final[int] = 20

# ASCII word character
_WORD = r"[A-Za-z0-9_]"
EMAIL_PATTERN: Final[str] = (
    rf"^{_WORD}+([\.-]?{_WORD}+)*@{_WORD}+([\.-]?{_WORD}+)*(\.{_WORD}{{2,3}})+$"
)

# ============================================================================
# QUERY CONSTANTS
# ============================================================================

DEFAULT_CHAINED_QUERY_FOOD: Final[str] = "burrito"
"""Food searched for by the chained sort/limit/projection query."""

CHAINED_QUERY_LIMIT: Final[int] = 2
"""Maximum number of documents returned by the chained query."""

CLASSIC_UPDATE_FOOD: Final[str] = "hamburger"
"""Food appended by the read-modify-write convenience wrapper."""

DEFAULT_UPDATED_AGE: Final[int] = 20
"""Age written by find_one_and_update_age when none is given."""
