"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """Upstream price provider endpoints and request limits."""

    model_config = SettingsConfigDict(env_prefix="PRICE_")

    dexscreener_url: str = "https://api.dexscreener.com/latest/dex/tokens"
    dexscreener_batch_size: int = 30  # DexScreener accepts at most 30 addresses per call
    jupiter_url: str = "https://api.jup.ag/price/v2"
    jupiter_batch_size: int = 100
    jupiter_api_key: SecretStr = SecretStr("")
    request_timeout_seconds: float = 10.0
    user_agent: str = "Axis-Snapshot/1.0"


class SnapshotSettings(BaseSettings):
    """Snapshot pipeline parameters.

    Controls bucket width, store batch size, the scheduling interval of the
    in-process runner and the address-length heuristic used by the resolver.
    All fields configurable via SNAPSHOT_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="SNAPSHOT_")

    bucket_seconds: int = 300  # 5-minute buckets
    batch_limit: int = 50  # max statements per store transaction
    interval_seconds: int = 300
    min_address_length: int = 20
    run_once: bool = False  # single run then exit (external cron trigger)


class StoreSettings(BaseSettings):
    """SQLite store location."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    db_path: str = "data/axis.db"


class ApiSettings(BaseSettings):
    """Read API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    providers: ProviderSettings = ProviderSettings()
    snapshot: SnapshotSettings = SnapshotSettings()
    store: StoreSettings = StoreSettings()
    api: ApiSettings = ApiSettings()
