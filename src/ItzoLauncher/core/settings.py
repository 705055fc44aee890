# === NAVMAP v1 ===
# {
#   "module": "ItzoLauncher.core.settings",
#   "purpose": "Pydantic v2 settings for the launcher and configuration resolution.",
#   "sections": [
#     {
#       "id": "loglevel",
#       "name": "LogLevel",
#       "anchor": "class-loglevel",
#       "kind": "class"
#     },
#     {
#       "id": "logformat",
#       "name": "LogFormat",
#       "anchor": "class-logformat",
#       "kind": "class"
#     },
#     {
#       "id": "launchersettings",
#       "name": "LauncherSettings",
#       "anchor": "class-launchersettings",
#       "kind": "class"
#     },
#     {
#       "id": "get-settings",
#       "name": "get_settings",
#       "anchor": "function-get-settings",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Launcher Settings

Typed configuration for the bootstrap launcher, loaded from ``ITZO_*``
environment variables:

- Datasource race cadence (initial interval, ceiling, global deadline)
- Metadata endpoints and the probe HTTP timeout
- Launcher directory and the files materialised from user-data
- Parameter store layout (path prefix, base name, chunk limit)
- Logging destination, level and format
- Addon inputs (CloudWatch agent config path)

Example:
    ITZO_DATASOURCE_TIMEOUT_S=30 ITZO_LOG_LEVEL=DEBUG itzo-launcher
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================================
# Enums for validated choices
# ============================================================================


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Supported log output formats."""

    CONSOLE = "console"
    JSON = "json"


# ============================================================================
# Launcher configuration
# ============================================================================


class LauncherSettings(BaseSettings):
    """Bootstrap launcher configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ITZO_",
        case_sensitive=False,
        extra="ignore",
    )

    datasource_interval_s: float = Field(
        0.1, description="Initial backoff between availability probes", gt=0
    )
    datasource_max_interval_s: float = Field(
        1.0, description="Backoff ceiling between availability probes", gt=0
    )
    datasource_timeout_s: float = Field(
        300.0, description="Global deadline for datasource selection", gt=0
    )

    ec2_metadata_url: str = Field(
        "http://169.254.169.254", description="EC2 instance metadata service address"
    )
    gce_metadata_url: str = Field(
        "http://metadata.google.internal", description="GCE metadata server address"
    )
    waagent_root: Path = Field(
        Path("/var/lib/waagent"), description="Azure WA agent provisioning directory"
    )
    metadata_timeout_s: float = Field(
        10.0, description="HTTP timeout for metadata requests", gt=0
    )

    itzo_dir: Path = Field(Path("/tmp/itzo"), description="Launcher working directory")
    log_dir: Path | None = Field(
        Path("/var/log/itzo"), description="Directory for structured logs (JSONL)"
    )
    log_level: LogLevel = Field(LogLevel.INFO, description="Root logging level")
    log_format: LogFormat = Field(
        LogFormat.CONSOLE, description="Pretty console or structured JSON"
    )

    ssm_prefix: str = Field("/itzo", description="Parameter store path prefix")
    ssm_parameter_base: str = Field("config", description="Base name of config parameters")
    ssm_max_chunks: int = Field(10, description="Maximum number of config chunks", ge=1)

    cw_agent_config: Path = Field(
        Path("/opt/aws/amazon-cloudwatch-agent/etc/amazon-cloudwatch-agent.json"),
        description="CloudWatch agent JSON config rewritten by the addon",
    )
    fluentd_variables_file: Path = Field(
        Path("/etc/default/td-agent"), description="td-agent variables file written by the addon"
    )

    @field_validator("itzo_dir", "log_dir", "waagent_root", mode="before")
    @classmethod
    def expand_paths(cls, v: Any) -> Any:
        """Expand user home."""
        if v is None or v == "":
            return None
        if isinstance(v, (str, Path)):
            return Path(v).expanduser()
        return v

    @field_validator("ec2_metadata_url", "gce_metadata_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_intervals(self) -> "LauncherSettings":
        if self.datasource_interval_s > self.datasource_max_interval_s:
            raise ValueError(
                "datasource_interval_s must not exceed datasource_max_interval_s "
                f"({self.datasource_interval_s} > {self.datasource_max_interval_s})"
            )
        return self

    @property
    def itzo_url_file(self) -> Path:
        return self.itzo_dir / "itzo_url"

    @property
    def itzo_version_file(self) -> Path:
        return self.itzo_dir / "itzo_version"

    @property
    def cell_config_file(self) -> Path:
        return self.itzo_dir / "cell_config.yaml"

    @property
    def launcher_files(self) -> tuple[Path, Path, Path]:
        """Files materialised from the cloud-config ``write_files`` section."""
        return (self.itzo_url_file, self.itzo_version_file, self.cell_config_file)


def get_settings(**overrides: Any) -> LauncherSettings:
    """Build settings from the environment, applying programmatic overrides last."""
    return LauncherSettings(**overrides)


__all__ = ["LauncherSettings", "LogFormat", "LogLevel", "get_settings"]
