import os

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    NODE_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Session tokens
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60

    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_HOST: str = "localhost"
    DB_NAME: str = "smart_tdah"
    DB_PORT: str = "5432"  # Default port for PostgreSQL
    SQLALCHEMY_TEST_DATABASE_URL: str = "sqlite:///./test.db"

    HOST: str = "localhost"
    SERVER_PORT: int = 5000

    # CORS configuration - comma-separated list of allowed origins
    FRONTEND_ORIGIN: str = "http://localhost:3000"

    # LLM providers
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GROQ_API_KEY: str = ""
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    MISTRAL_API_KEY: str = ""
    MISTRAL_MODEL: str = "mistral-medium"
    MISTRAL_BASE_URL: str = "https://api.mistral.ai/v1"

    # /ask pipeline
    LLM_TIMEOUT_SECONDS: float = 30.0
    STORE_TIMEOUT_SECONDS: float = 30.0
    ASK_HISTORY_LIMIT: int = 10
    DIAGNOSTIC_LOG_PATH: str = "logs/llms-data.log"

    @property
    def DATABASE_URL(self):
        if self.NODE_ENV == "test":
            return self.SQLALCHEMY_TEST_DATABASE_URL
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def CORS_ORIGINS(self):
        return [origin.strip() for origin in self.FRONTEND_ORIGIN.split(",") if origin.strip()]

    model_config = SettingsConfigDict(env_file=os.getenv("ENV_FILE", ".env"), extra="ignore")


settings = Settings()
