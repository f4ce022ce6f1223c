import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    CACHE_BACKEND = data.get("CACHE_BACKEND", "redis")  # "redis" or "memory"
    CREATE_TABLES_ON_STARTUP = bool(data.get("CREATE_TABLES_ON_STARTUP", True))

    # Premium entitlement engine
    PREMIUM_GRACE_PERIOD_DAYS = data.get("PREMIUM_GRACE_PERIOD_DAYS", 3)
    PREMIUM_WARNING_HORIZON_DAYS = data.get("PREMIUM_WARNING_HORIZON_DAYS", 3)
    PREMIUM_SWEEP_ENABLED = bool(data.get("PREMIUM_SWEEP_ENABLED", True))
    PREMIUM_SWEEP_INTERVAL_SECONDS = data.get("PREMIUM_SWEEP_INTERVAL_SECONDS", 21600)  # 6 hours
    PREMIUM_WARNING_TTL_SECONDS = data.get("PREMIUM_WARNING_TTL_SECONDS", 604800)  # 7 days
    PREMIUM_NOTIFICATION_WEBHOOK = data.get("PREMIUM_NOTIFICATION_WEBHOOK", None)
    PREMIUM_COMMAND_SYNC_WEBHOOK = data.get("PREMIUM_COMMAND_SYNC_WEBHOOK", None)
