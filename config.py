# config.py - configuration constants
import os
from pathlib import Path

# Create instance folder if it doesn't exist
INSTANCE_PATH = Path(__file__).parent / 'instance'
INSTANCE_PATH.mkdir(exist_ok=True)

# Database file will be stored in the instance folder
DB_PATH = INSTANCE_PATH / 'quiz.db'


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey")
    # Use DATABASE_URL for production, fallback to SQLite for local development
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH.absolute()}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    INSTANCE_PATH = str(INSTANCE_PATH)
    # - pool_pre_ping checks connections before use to avoid stale/expired sockets
    # - pool_recycle forces periodic reconnects to reduce SSL/idle issues
    # - pool_timeout controls how long to wait for a connection from the pool
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": _int_env("SQLALCHEMY_POOL_RECYCLE", 280),
        "pool_timeout": _int_env("SQLALCHEMY_POOL_TIMEOUT", 10),
    }

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "0") == "1"

    # Preferred scheme for URL generation in prod behind HTTPS
    PREFERRED_URL_SCHEME = os.getenv("PREFERRED_URL_SCHEME", "https")

    # "joined": Access-Control-Allow-Origin carries the space-joined domain list.
    # "echo": the matched request origin is echoed back with Vary: Origin.
    EMBED_CORS_MODE = os.getenv("EMBED_CORS_MODE", "joined")

    # Player timings handed to the embedded widget
    EMBED_ADVANCE_DELAY_MS = _int_env("EMBED_ADVANCE_DELAY_MS", 1500)
    EMBED_TICK_INTERVAL_MS = _int_env("EMBED_TICK_INTERVAL_MS", 1000)

    # Defaults for generated iframe snippets
    EMBED_FRAME_WIDTH = os.getenv("EMBED_FRAME_WIDTH", "100%")
    EMBED_FRAME_HEIGHT = os.getenv("EMBED_FRAME_HEIGHT", "600px")
