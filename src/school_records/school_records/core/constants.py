"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SYSTEM_ACTOR = "system"

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

DEFAULT_SORT_FIELD = "timestamp"

# Named windows for audit statistics.
AUDIT_PERIODS = {
    "1d": 1,
    "7d": 7,
    "30d": 30,
}
DEFAULT_AUDIT_PERIOD = "7d"

# MySQL ER_DUP_ENTRY
MYSQL_DUPLICATE_KEY = 1062
