import os

from config.config import *  # noqa: F401,F403
from config.config import db_config

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config()

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

ENABLE_TIMEOUT_SWEEPER = bool(int(os.getenv("ENABLE_TIMEOUT_SWEEPER", "1")))
