from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    SERVICE_NAME: str = "billing-service"
    SERVICE_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # "sql" (relational backend) or "local" (JSON document store on this device)
    STORE_BACKEND: str = "sql"
    LOCAL_STORE_PATH: str = "billing_store.json"

    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "billing"
    POSTGRES_USER: str = "billing"
    POSTGRES_PASSWORD: str = "billing"
    DATABASE_URL: Optional[str] = None

    INVOICE_PREFIX: str = "K"
    FINANCIAL_YEAR_START_MONTH: int = 4
    DEFAULT_LOW_STOCK_THRESHOLD: int = 10

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

@lru_cache
def get_settings() -> Settings:
    return Settings()
