from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from leetrack.domain.constants import (
    DEBOUNCE_DELAY,
    DEFAULT_BASE_URL,
    DEFAULT_JUDGE_DOMAINS,
    POLL_INTERVAL,
    POLL_MAX_ATTEMPTS,
    POLL_MAX_ELAPSED,
    REQUEST_TIMEOUT,
)


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/leetrack/config.toml",
        Path.home() / ".leetrack.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for leetrack.
    Supports loading from:
    1. Environment variables (LEETRACK_*)
    2. Config file (~/.config/leetrack/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="LEETRACK_",
        extra="ignore",
    )

    # Judge
    base_url: str = DEFAULT_BASE_URL
    judge_domains: list[str] = Field(default_factory=lambda: list(DEFAULT_JUDGE_DOMAINS))

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".config/leetrack/data")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/leetrack/logs")

    # Storage
    durable_backend: Literal["json", "memory"] = "json"

    # Timing
    debounce_delay: float = Field(default=DEBOUNCE_DELAY, ge=0)
    poll_interval: float = Field(default=POLL_INTERVAL, ge=0)
    poll_max_attempts: int = Field(default=POLL_MAX_ATTEMPTS, ge=0)
    poll_max_elapsed: float = Field(default=POLL_MAX_ELAPSED, ge=0)
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)

    # Server
    host: str = "127.0.0.1"
    port: int = 8765
    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def resolve_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("base_url")
    @classmethod
    def strip_base_url(cls, v: str) -> str:
        return v.rstrip("/")


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/leetrack/config.toml (if exists)
    3. Environment variables (LEETRACK_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
