"""
Constants Module - Centralized configuration values
===================================================

PURPOSE: Single source of truth for all constants used across the codebase
PATTERN: Modular constants organized by category
SCOPE: Application-wide default values

Runtime overrides are read by :mod:`infrastructure.settings`.
"""

# Reservation site
PARKING_URL = "https://reservenski.parkstevenspass.com/select-parking"
AVAILABILITY_URL_MARKER = "graphql"  # Substring identifying the availability API responses
AVAILABILITY_PAYLOAD_KEY = "publicParkingAvailability"
RESORT_NAME = "Stevens Pass"
DEFAULT_TIMEZONE = "America/Los_Angeles"

# Monitored window
DEFAULT_WINDOW_MONTHS = 3
DATE_FORMAT = "%Y-%m-%d"
WEEKEND_DAYS = (5, 6)  # Saturday, Sunday (date.weekday())

# Trigger schedule (milliseconds, matching the refresh configuration surface)
DEFAULT_REFRESH_BASE_INTERVAL_MS = 30 * 60 * 1000   # 30 minutes
DEFAULT_REFRESH_JITTER_MAX_MS = 5 * 60 * 1000       # 0-5 minutes of jitter
DEFAULT_DAILY_DIGEST_HOUR_UTC = 7                   # 7 AM UTC

# Browser configuration
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/120.0.0.0"
)
BROWSER_VIEWPORT = {"width": 1280, "height": 720}


class BrowserTimeouts:
    """Centralized timeout configuration for browser operations (milliseconds)"""
    NAVIGATION = 30000      # Initial page load
    RELOAD = 45000          # Refresh waiting for network idle
    PAYLOAD_WAIT = 15000    # Wait for the availability response after a reload


# Consecutive reloads without an availability response before the browser is relaunched
MAX_MISSED_PAYLOADS = 3


# Notification copy
STARTUP_SUBJECT = "🚀 Parking Monitor Started"
STARTUP_BODY = (
    "The parking availability monitor has started successfully "
    "and is now tracking updates."
)
DIGEST_SUBJECT = "📊 Daily Parking Report"
DIGEST_HEADER = "📊 **Daily Parking Availability Report**"
STARTUP_REPORT_SUBJECT = "📊 Startup Parking Report"
STARTUP_REPORT_HEADER = "📊 **Current Parking Availability:**"
