from pathlib import Path
from datetime import timedelta
import os

BASE_DIR = Path(__file__).resolve().parent
INSTANCE_DIR = BASE_DIR / "instance"
DB_FILE = INSTANCE_DIR / "app.db"


def _get_database_uri() -> str:
    url = os.environ.get("DATABASE_URL")
    if url:
        return url
    return f"sqlite:///{DB_FILE.as_posix()}"


class Config:
    SECRET_KEY = os.environ.get("SESSION_SECRET") or os.environ.get(
        "SECRET_KEY", "dev-change-me"
    )
    SQLALCHEMY_DATABASE_URI = _get_database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10MB uploads

    PORT = int(os.environ.get("PORT", "5000"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    PRIVATE_OBJECT_DIR = os.environ.get(
        "PRIVATE_OBJECT_DIR", (INSTANCE_DIR / "objects").as_posix()
    )
    FEDERATED_CLAIMS_KEY = os.environ.get("FEDERATED_CLAIMS_KEY", "claims")

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = os.environ.get("FLASK_ENV") == "production"
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    REMEMBER_COOKIE_DURATION = timedelta(days=7)
