"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_AUTO_MARK_TIME = "23:59"
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0
DEFAULT_BATCH_MAX_WORKERS = 4
DEFAULT_QUEUE_LIMIT = 500

DUPLICATE_WINDOW_SECONDS = 120
SHORT_STAY_SECONDS = 300
LONG_STAY_HOURS = 16
EXCESSIVE_ENTRIES_PER_DAY = 10
UNUSUAL_HOUR_START = 23
UNUSUAL_HOUR_END = 5

AUTO_RECONCILED_NOTE = "Auto-reconciled: no blocking issues"
BULK_RESOLUTION_NOTE = "Bulk approved"
