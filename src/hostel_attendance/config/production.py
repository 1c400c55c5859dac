import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hostel_attendance"),
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "8")),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

API_TOKEN = os.getenv("API_TOKEN", "")

LOCK_TIMEOUT_SECONDS = float(os.getenv("LOCK_TIMEOUT_SECONDS", "10"))
BATCH_MAX_WORKERS = int(os.getenv("BATCH_MAX_WORKERS", "8"))

START_SCHEDULER = bool(int(os.getenv("START_SCHEDULER", "1")))
TIMEZONE = os.getenv("TIMEZONE") or None

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
