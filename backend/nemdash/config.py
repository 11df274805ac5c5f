import os


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


# Connections
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./nemdash.db")
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", REDIS_URL)
ALLOW_ORIGINS = [o.strip() for o in os.environ.get("ALLOW_ORIGINS", "http://localhost,http://localhost:3000").split(",") if o.strip()]

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Refresh schedule
AUTO_REFRESH_ENABLED = _flag("AUTO_REFRESH_ENABLED")
REFRESH_INTERVAL_SECONDS = int(os.environ.get("REFRESH_INTERVAL_SECONDS", "60"))
SIMULATOR_ENABLED = _flag("SIMULATOR_ENABLED")

# Cache TTLs (seconds)
CACHE_TTL_GENERATORS = int(os.environ.get("CACHE_TTL_GENERATORS", "60"))
CACHE_TTL_CHART = int(os.environ.get("CACHE_TTL_CHART", "30"))
CACHE_TTL_LEADERBOARD = int(os.environ.get("CACHE_TTL_LEADERBOARD", "120"))

# Query shaping
ROW_LIMIT = 2000
MAX_CHART_POINTS = 300
LATEST_READINGS_LIMIT = 200
REVENUE_LEADERBOARD_SIZE = 10
PERFORMANCE_LEADERBOARD_SIZE = 15

# Settlement intervals per hour (5-minute dispatch)
INTERVALS_PER_HOUR = 12
