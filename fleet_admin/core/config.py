import os
from dotenv import load_dotenv

load_dotenv()


def _split(value: str):
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    APP_NAME = os.getenv("APP_NAME", "Fleet Admin API")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./fleet_admin.db")

    # Backend the local-first client mirrors its writes to
    API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
    SYNC_TIMEOUT_SECONDS = float(os.getenv("SYNC_TIMEOUT_SECONDS", "5"))

    # Directory holding the JSON collections (trucks.json, trips.json, ...)
    LOCAL_STORE_DIR = os.getenv("LOCAL_STORE_DIR", "./.fleet_store")
    RECONCILE_INTERVAL_SECONDS = float(os.getenv("RECONCILE_INTERVAL_SECONDS", "30"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    ALLOWED_ORIGINS = _split(os.getenv("ALLOWED_ORIGINS", "")) or ["*"]


settings = Settings()
