import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hostel_attendance_test"),
    "connection_timeout": 5,
    "pool_size": int(os.getenv("DB_POOL_SIZE", "8")),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

API_TOKEN = ""

LOCK_TIMEOUT_SECONDS = 2.0
BATCH_MAX_WORKERS = 4

START_SCHEDULER = False
TIMEZONE = None

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
