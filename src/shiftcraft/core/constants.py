"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

STANDARD_WEEK_HOURS = Decimal("40")
HOURS_QUANTUM = Decimal("0.01")
MINUTES_PER_DAY = 24 * 60

STAFF_ROLE_NAME = "STAFF"
MANAGER_ROLE_NAME = "MANAGER"

DEFAULT_MAX_ASSIGNMENTS = 1
MIN_PASSWORD_LENGTH = 6
