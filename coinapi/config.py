from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from urllib.parse import quote_plus


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="coinapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Coin Economy API"
    PROJECT_NAME: str = "Coin API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DATABASE: str = "postgres"
    POSTGRES_SCHEMA: str = "coins"

    # DATABASE_URL이 설정되면 POSTGRES_* 값보다 우선
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Payment gateway
    PAYMENT_GATEWAY_NAME: str = "dodo"
    PAYMENT_GATEWAY_API_KEY: str = ""
    PAYMENT_GATEWAY_BASE_URL: str = "https://test.dodopayments.com"
    PAYMENT_GATEWAY_TIMEOUT_SECONDS: float = 30.0
    PAYMENT_WEBHOOK_SECRET: Optional[str] = None  # 미설정 시 서명 검증 생략 (개발용)
    PAYMENT_WEBHOOK_TOLERANCE_SECONDS: int = 300  # webhook-timestamp 허용 오차
    FRONTEND_URL: str = "http://localhost:3000"

    # Coin economy rules
    CREATOR_SHARE_PERCENT: int = 70  # 선물 금액 중 크리에이터 몫 (나머지는 플랫폼 수수료)
    REWARD_PERCENT: int = 5  # 구매 금액 대비 리워드 코드 가치
    REWARD_CODE_PREFIX: str = "REWARD-"
    REWARD_CODE_LENGTH: int = 10
    REWARD_CODE_TTL_DAYS: int = 30
    REWARD_CODE_MAX_ATTEMPTS: int = 5

    # Pagination
    HISTORY_PAGE_DEFAULT: int = 20
    HISTORY_PAGE_MAX: int = 100


settings = Settings()
