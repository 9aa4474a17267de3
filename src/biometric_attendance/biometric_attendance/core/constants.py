"""Constants and defaults.

Note: Keep thresholds here to avoid magic numbers spread across services.
"""

DEFAULT_SESSION_DAYS = 7
RECORDS_PER_PAGE = 25

# Attendance computation
DEFAULT_GRACE_MINUTES = 15
EARLY_SCAN_LIMIT_MINUTES = 120
TIME_OUT_SEARCH_MINUTES = 480
DOUBLE_PUNCH_MINUTES = 10
MAX_SHIFT_MINUTES = 1200
OVERTIME_THRESHOLD_MINUTES = 30
UNDERTIME_HOUR_MINUTES = 60
# The manual-entry suggestion only reports overtime past a full hour.
OVERTIME_SUGGEST_MINUTES = 60
REVIEW_PER_PAGE = 50
LUNCH_DEDUCTION_MINUTES = 60
LUNCH_DEDUCTION_AFTER_MINUTES = 5 * 60
UTILITY_MIN_HOURS = 8
NEXT_DAY_EARLY_WINDOW_MINUTES = 60

# Anomaly detection
DEFAULT_ANOMALY_DAYS = 7
SIMULTANEOUS_SITE_MINUTES = 30
SIMULTANEOUS_SITE_HIGH_MINUTES = 10
DUPLICATE_HIGH_COUNT = 3
UNUSUAL_HOUR_START = 2
UNUSUAL_HOUR_END = 5
EXCESSIVE_SCANS_PER_DAY = 6
EXCESSIVE_SCANS_HIGH = 10

# Retention
MIN_RETENTION_MONTHS = 1
MAX_RETENTION_MONTHS = 120
DEFAULT_RETENTION_MONTHS = 3
DEFAULT_POINT_RETENTION_MONTHS = 12
DEFAULT_EXPIRY_WARNING_DAYS = 7
CLEANUP_HOUR = 2

# Violation points, matched to the statuses that generate them.
POINT_VALUES = {
    "half_day_absence": 0.50,
    "undertime": 0.25,
    "undertime_more_than_hour": 0.50,
    "tardy": 0.25,
    "ncns": 1.00,
    "failed_bio_in": 0.25,
    "failed_bio_out": 0.25,
}
