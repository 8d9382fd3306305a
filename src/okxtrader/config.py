from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    env: str = Field(default="dev")
    log_level: str = Field(default="INFO")
    log_file: str | None = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024)
    log_backup_count: int = Field(default=5)
    log_json: bool = False
    sentry_dsn: str | None = None

    # OKX credentials (private websocket + account REST endpoints)
    okx_api_key: str | None = None
    okx_api_secret: str | None = None
    okx_api_passphrase: str | None = None
    okx_testnet: bool = False

    okx_ws_private_url: str = "wss://ws.okx.com:8443/ws/v5/private"
    okx_ws_private_testnet_url: str = "wss://wspap.okx.com:8443/ws/v5/private"

    # Adapter behaviour
    adapter_ping_interval: float = 25.0  # OKX drops idle sockets after 30s
    adapter_max_backoff: float = 30.0
    request_timeout: float = Field(default=10.0)
    rate_limit_per_sec: float = 5.0

    # Balance synchronisation
    balance_pull_interval_ms: int = Field(default=300_000)
    balance_topic: str = "account"

    # Bollinger bands defaults
    bands_period: int = 20
    bands_std_dev: float = 2.0
    bands_limit: int = 500
    bands_scale: int = 8

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
