"""User configuration model."""

from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


SUPPORTED_BAUD_RATES = (9600, 57600, 115200, 230400, 460800, 921600)
DEFAULT_BAUD_RATE = 115200


class UserConfigData(BaseSettings):
    """User configuration data model with automatic environment variable support.

    Precedence order (highest to lowest):
    1. Environment variables (highest)
    2. Constructor arguments (file data)
    3. Default values (lowest)
    """

    model_config = SettingsConfigDict(
        env_prefix="FLASHDECK_",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Environment variables override configuration file values."""
        return (env_settings, init_settings, file_secret_settings)

    baud_rate: int = Field(
        default=DEFAULT_BAUD_RATE,
        description="Serial baud rate used for the bootloader session",
    )
    port: str | None = Field(
        default=None,
        description="Serial port of the board; auto-detected when unset",
    )

    # Stored as a comma separated string in the environment
    manifest_paths: Annotated[list[Path], NoDecode] = Field(
        default_factory=lambda: [Path("firmwares")],
        description="Directories searched for firmware manifests",
    )

    log_level: str = "WARNING"

    progress_step: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Minimum percent increase between two progress lines",
    )
    http_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for downloading firmware parts",
    )
    connect_attempts: int = Field(
        default=7,
        ge=1,
        description="Number of bootloader connection attempts",
    )

    @field_validator("manifest_paths", mode="before")
    @classmethod
    def decode_manifest_paths(cls, v: Any) -> list[Path]:
        if isinstance(v, str):
            return [Path(path.strip()).expanduser() for path in v.split(",") if path.strip()]
        elif isinstance(v, list | tuple):
            return [
                Path(path.strip() if isinstance(path, str) else path).expanduser()
                for path in v
                if str(path).strip()
            ]
        return []

    @field_validator("baud_rate")
    @classmethod
    def validate_baud_rate(cls, v: int) -> int:
        if v not in SUPPORTED_BAUD_RATES:
            raise ValueError(f"Baud rate must be one of {list(SUPPORTED_BAUD_RATES)}")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a recognized value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.strip().upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return upper_v
