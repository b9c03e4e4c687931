"""Root settings model for Parley configuration."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from parley.config.models import ObservabilityConfig, ServiceConfig, SessionConfig


def toml_files() -> tuple[Path, Path]:
    """The base and environment TOML files, in that order.

    ``PARLEY_CONFIG_DIR`` selects the directory (default ``config/`` under
    the working directory) and ``PARLEY_ENV`` the environment file (default
    ``development``). Either file may be absent.
    """
    config_dir = Path(os.environ.get("PARLEY_CONFIG_DIR", "config"))
    env = os.environ.get("PARLEY_ENV", "development")
    return config_dir / "default.toml", config_dir / f"{env}.toml"


class Settings(BaseSettings):
    """Root configuration object containing all nested configuration sections.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{PARLEY_ENV}.toml (environment overrides)
    4. PARLEY_* environment variables (runtime overrides)
    """

    model_config = SettingsConfigDict(
        env_prefix="PARLEY_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="parley", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")

    service: ServiceConfig = Field(
        default_factory=ServiceConfig,
        description="Account service configuration",
    )
    session: SessionConfig = Field(
        default_factory=SessionConfig,
        description="Session behaviour configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Read the TOML files below constructor arguments and PARLEY_* variables.

        Sources are deep merged, so an environment file only needs the keys
        it changes within a section.
        """
        base_file, env_file = toml_files()
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=env_file),
            TomlConfigSettingsSource(settings_cls, toml_file=base_file),
        )
