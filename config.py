"""
Runtime configuration for YelpCamp.

Everything is read from environment variables so the same build runs
locally, in Docker and in CI.
"""
import os


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "1" if default else "").strip().lower()
    return raw in {"1", "true", "yes", "on"}


MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "yelp-camp")
MONGO_TRANSACTIONS = _env_flag("MONGO_TRANSACTIONS")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", 5000))

# "mongo" or "memory"
STORE_BACKEND = os.getenv("STORE_BACKEND", "mongo").strip().lower()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
