import os
import tempfile

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "market_ops_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

APP_TIMEZONE = "Asia/Kolkata"

UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(tempfile.gettempdir(), "market_ops_uploads"))
MAX_CONTENT_LENGTH = 60 * 1024 * 1024
SIGNED_URL_TTL_SECONDS = 3600

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
