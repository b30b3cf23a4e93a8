from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)

    ENVIRONMENT: str = "development"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str = "logs/chat_relay_errors.log"
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]
    # Inbound payloads are logged at DEBUG only when enabled
    LOG_MESSAGE_PAYLOADS: bool = False

    # Loki settings
    LOKI_ENABLED: bool = False
    LOKI_URL: str = "http://loki:3100"
    LOKI_VERSION: str = "1"

    # Relay settings
    CONNECT_CONFIRMATION_TEMPLATE: str = (
        "Server notice: user {user_id} connected successfully"
    )


app_settings = Settings()
