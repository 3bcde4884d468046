"""Unified env loader. Same source for the API server, seed scripts and tests."""
import os
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_LOADED = False


def load_env():
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    from dotenv import load_dotenv
    load_dotenv(BACKEND_DIR / ".env", override=False)
    _ENV_LOADED = True


def get_mongo_url():
    load_env()
    return os.environ.get("MONGO_URL", "mongodb://localhost:27017")


def get_db_name():
    load_env()
    return os.environ.get("DB_NAME", "rigshop")


def get_jwt_secret():
    load_env()
    return os.environ.get("JWT_SECRET_KEY", "your-secret-key-change-in-production")


def get_jwt_algorithm():
    load_env()
    return os.environ.get("JWT_ALGORITHM", "HS256")


def get_cors_origins():
    load_env()
    return os.environ.get("CORS_ORIGINS", "*").split(",")
