import os

from .config import *  # noqa: F401,F403
from .config import db_config, env_flag

SECRET_KEY = "test-secret"

DB_CONFIG = db_config()

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "/tmp/pass_registry_uploads")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
