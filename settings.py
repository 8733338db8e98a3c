# settings.py
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Project
    PROJECT_NAME: str = "Jewelcraft Storefront"
    API_PREFIX: str = "/api"

    # Seed data & client-side session storage
    SEED_DATA_DIR: Path = BASE_DIR / "mock_data"
    SESSION_FILE: Path = BASE_DIR / "var" / "current_user.json"

    # Simulated network latency multiplier (0 disables the delays)
    LATENCY_SCALE: float = 1.0

    # Pricing
    CURRENCY: str = "INR"
    TAX_RATE: float = 0.03  # GST
    SHIPPING_FEE: float = 500.0
    FREE_SHIPPING_THRESHOLD: float = 50000.0

    # Catalog / custom orders
    FEATURED_COUNT: int = 4
    CUSTOM_ORDER_LEAD_DAYS: int = 30

    # Security
    JWT_SECRET: str = "dev-only-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 60 * 24  # 24h

    # Frontend origins (CORS), comma separated
    CORS_ORIGINS: str = "http://localhost:5173"


# ✅ Instantiate settings globally
settings = Settings()
