import os

from config.config import *  # noqa: F401,F403
from config.config import db_config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config()

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

# Run the sweeper in exactly one process when serving with several workers.
ENABLE_TIMEOUT_SWEEPER = bool(int(os.getenv("ENABLE_TIMEOUT_SWEEPER", "1")))
