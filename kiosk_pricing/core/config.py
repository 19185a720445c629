from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'kiosk_user'
    POSTGRES_PASSWORD: str = 'kiosk_pass'
    POSTGRES_DB: str = 'kiosk_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None  # Sobrescribe la URL armada con POSTGRES_* (ej. sqlite para pruebas)

    # Redis settings (broker de Celery)
    REDIS_HOST: str = 'redis'
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # Pricing settings
    TIMEZONE: str = 'America/Bogota'  # Hora local de las tiendas (ventanas de promociones)
    CURRENCY_CODE: str = 'COP'
    CURRENCY_DECIMALS: int = 0  # El peso colombiano no maneja centavos en caja
    DEFAULT_CHANNEL: str = 'pos'
    USAGE_RECONCILE_INTERVAL: float = 3600.0  # Segundos entre conciliaciones de contadores

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("CURRENCY_DECIMALS")
    @classmethod
    def validate_currency_decimals(cls, v):
        if v < 0 or v > 4:
            raise ValueError('CURRENCY_DECIMALS debe estar entre 0 y 4')
        return v

settings = Settings()
