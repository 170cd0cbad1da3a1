"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_FEED_LIMIT = 50
DEFAULT_REPORT_DAYS = 7

DEFAULT_GRACE_MINUTES = 15
FULL_DAY_MINUTES = 8 * 60

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_VIDEO_BYTES = 50 * 1024 * 1024
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024

SIGNED_URL_TTL_SECONDS = 3600

COMMENT_MAX_LENGTH = 1000
COMMODITY_NAME_MAX_LENGTH = 100
COMMODITY_NOTES_MAX_LENGTH = 500
FEEDBACK_MAX_LENGTH = 2000
STALL_FIELD_MAX_LENGTH = 200

# Largest values the DECIMAL columns accept.
MAX_PRICE = Decimal("99999999.99")  # offers.price DECIMAL(10,2)
MAX_AMOUNT = Decimal("9999999999.99")  # DECIMAL(12,2) money columns

ASSET_PURPOSE_MAX_LENGTH = 500
REVIEW_NOTES_MAX_LENGTH = 1000
RATING_RANGE = (1, 5)
