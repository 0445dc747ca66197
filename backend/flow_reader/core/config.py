from typing import List, Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Flow Reader"
    API_V1_PREFIX: str = "/api/v1"

    # ===========================================
    # Environment Mode
    # ===========================================
    ENV: Literal["development", "production"] = "development"

    # ===========================================
    # Database
    # ===========================================
    # Local single-user store next to the app data
    DATABASE_URL: str = "sqlite:///./flow-reader.db"

    # ===========================================
    # Gemini Provider Configuration
    # ===========================================
    # API key, model and theme are user settings kept in the settings table.
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL: str = "gemini-2.5-flash"
    LLM_TIMEOUT: int = 120  # seconds

    # ===========================================
    # Renderer Access
    # ===========================================
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    class Config:
        env_file = ".env"


settings = Settings()
