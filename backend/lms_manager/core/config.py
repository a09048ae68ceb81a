from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- DB ---
    DATABASE_URL: str = "sqlite:///./lms_manager.sqlite"
    DB_ECHO: bool = False  # SQL en el log (solo depuración)

    # --- JWT ---
    # Tokens are issued by the identity service; here we only decode them.
    JWT_SECRET: str = "change-me-lms-manager"
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_MIN: int = 10080  # 7 días

    # --- Games ---
    # Seconds to wait for another request on the same game; None waits forever
    GAME_LOCK_TIMEOUT_S: Optional[float] = 30.0

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # Le dice a Pydantic que lea del archivo .env
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instancia global para importar en el resto del proyecto
settings = Settings()
