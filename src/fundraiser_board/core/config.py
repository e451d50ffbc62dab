"""Configuration management with Pydantic validation.

Provides type-safe configuration with:
- Pydantic models for validation
- Optional YAML file
- Environment variable overrides (the names used in ``.env`` files)
- Serialization of the runtime config for deployment
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ColorName = Literal["red", "orange", "yellow", "green", "blue", "violet", "white"]


# =============================================================================
# Configuration Models
# =============================================================================


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ScheduleConfig(_Frozen):
    """When the boards are updated."""

    update_interval_minutes: int = Field(25, ge=1, le=60, description="Minutes between updates")
    start_hour: int = Field(12, ge=0, le=23, description="First active hour (inclusive)")
    end_hour: int = Field(22, ge=0, le=23, description="End of active window (exclusive)")
    timezone: str = Field("America/New_York", description="IANA time zone name")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "ScheduleConfig":
        if self.start_hour >= self.end_hour:
            raise ValueError("start_hour must be before end_hour")
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class SheetConfig(_Frozen):
    """Google Sheets source of the donation total."""

    sheet_id: str = Field("", description="Spreadsheet ID")
    api_key: SecretStr = Field(default=SecretStr(""), description="Google API key")
    cell_range: str = Field("Sheet1!A1:B10", description="A1 range to scan")


class BoardConfig(_Frozen):
    """One Vestaboard reached through the Subscription API."""

    name: str = Field(..., min_length=1, description="Name used in logs")
    api_key: SecretStr = Field(default=SecretStr(""), description="Installable API key")
    api_secret: SecretStr = Field(default=SecretStr(""), description="Installable API secret")
    subscription_id: str = Field("", description="Subscription ID")

    def missing_credentials(self) -> list[str]:
        missing = []
        if not self.api_key.get_secret_value():
            missing.append("api_key")
        if not self.api_secret.get_secret_value():
            missing.append("api_secret")
        if not self.subscription_id:
            missing.append("subscription_id")
        return missing


def _default_boards() -> list[BoardConfig]:
    return [BoardConfig(name="Vestaboard One"), BoardConfig(name="Vestaboard Two")]


class MessageConfig(_Frozen):
    """Board wording and colors."""

    title: str = Field("Help Rebuild", max_length=22)
    subtitle: str = Field("The Bev!", max_length=22)
    amount_label: str = Field("Raised", max_length=22)
    closing: str = Field("Thank You!", max_length=22)
    accent_color: ColorName = "orange"
    amount_color: ColorName = "green"


class DeployConfig(_Frozen):
    """DigitalOcean droplet settings."""

    token: SecretStr = Field(default=SecretStr(""), description="DigitalOcean API token")
    droplet_name: str = Field("bev-fundraiser", min_length=1)
    region: str = "nyc3"
    size: str = "s-1vcpu-512mb-10gb"
    image: str = "ubuntu-22-04-x64"
    package_spec: str = Field("fundraiser-board", description="pip requirement installed on the droplet")
    boot_poll_attempts: int = Field(30, ge=1)
    poll_interval: float = Field(5.0, gt=0)
    setup_wait_seconds: int = Field(300, ge=0, description="Time allowed for cloud-init")


class LoggingConfig(_Frozen):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level")
    format: Literal["simple", "structured"] = Field("simple", description="Format: simple, structured")
    file: str | None = Field(None, description="Log file path")
    max_size_mb: int = Field(10, ge=1, description="Max log file size")
    backup_count: int = Field(3, ge=0, description="Number of backup files")


class Config(_Frozen):
    """Root configuration model."""

    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    sheet: SheetConfig = Field(default_factory=SheetConfig)
    boards: list[BoardConfig] = Field(default_factory=_default_boards)
    message: MessageConfig = Field(default_factory=MessageConfig)
    deploy: DeployConfig = Field(default_factory=DeployConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def _missing_sheet_credentials(self) -> list[str]:
        missing = []
        if not self.sheet.sheet_id:
            missing.append("sheet.sheet_id")
        if not self.sheet.api_key.get_secret_value():
            missing.append("sheet.api_key")
        return missing

    def require_sheet_credentials(self) -> None:
        """Raise ConfigurationError unless the sheet can be read."""
        missing = self._missing_sheet_credentials()
        if missing:
            raise ConfigurationError(
                "Missing required credentials",
                details={"missing": ", ".join(missing)},
            )

    def require_update_credentials(self) -> None:
        """Raise ConfigurationError unless an update cycle can authenticate."""
        missing = self._missing_sheet_credentials()
        if not self.boards:
            missing.append("boards")
        for board in self.boards:
            missing.extend(f"{board.name}.{name}" for name in board.missing_credentials())

        if missing:
            raise ConfigurationError(
                "Missing required credentials",
                details={"missing": ", ".join(missing)},
            )

    def to_deploy_yaml(self) -> str:
        """Serialize the runtime config, secrets included, for the droplet.

        The DigitalOcean token is left out; the droplet never needs it.
        """
        data = _reveal(self.model_dump(exclude={"deploy"}))
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


# =============================================================================
# Loading
# =============================================================================

# Environment variable -> (section, field)
ENV_FIELDS: dict[str, tuple[str, str]] = {
    "UPDATE_INTERVAL_MINUTES": ("schedule", "update_interval_minutes"),
    "START_HOUR": ("schedule", "start_hour"),
    "END_HOUR": ("schedule", "end_hour"),
    "TIMEZONE": ("schedule", "timezone"),
    "GOOGLE_SHEET_ID": ("sheet", "sheet_id"),
    "GOOGLE_API_KEY": ("sheet", "api_key"),
    "SHEET_RANGE": ("sheet", "cell_range"),
    "DIGITALOCEAN_TOKEN": ("deploy", "token"),
    "DROPLET_NAME": ("deploy", "droplet_name"),
    "DROPLET_REGION": ("deploy", "region"),
    "DROPLET_SIZE": ("deploy", "size"),
    "DROPLET_IMAGE": ("deploy", "image"),
    "DEPLOY_PACKAGE_SPEC": ("deploy", "package_spec"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
    "LOG_FILE": ("logging", "file"),
}

# VESTABOARD_<SLOT>_<SUFFIX> variables, slot order matches the boards list
BOARD_ENV_SLOTS = ("ONE", "TWO")
BOARD_ENV_SUFFIXES = {
    "API_KEY": "api_key",
    "API_SECRET": "api_secret",
    "SUBSCRIPTION_ID": "subscription_id",
}


def _reveal(value: Any) -> Any:
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    if isinstance(value, dict):
        return {k: _reveal(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_reveal(v) for v in value]
    return value


def _normalize_sections(data: dict[str, Any]) -> dict[str, Any]:
    """Turn empty YAML sections into empty mappings; reject other shapes."""
    for section in {section for section, _ in ENV_FIELDS.values()} | {"message"}:
        value = data.get(section)
        if value is None:
            if section in data:
                data[section] = {}
        elif not isinstance(value, dict):
            raise ConfigurationError(
                "Config section must be a mapping",
                details={"section": section, "type": type(value).__name__},
            )

    boards = data.get("boards")
    if boards is None:
        data.pop("boards", None)
    elif not isinstance(boards, list) or not all(isinstance(b, dict) for b in boards):
        raise ConfigurationError(
            "Config section must be a list of mappings",
            details={"section": "boards"},
        )
    return data


def _apply_env(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    data = _normalize_sections(data)
    for env_name, (section, key) in ENV_FIELDS.items():
        value = environ.get(env_name)
        if value:
            data.setdefault(section, {})[key] = value

    boards = data.get("boards")
    if boards is None:
        boards = [{"name": b.name} for b in _default_boards()]

    for index, slot in enumerate(BOARD_ENV_SLOTS):
        values = {
            key: environ[f"VESTABOARD_{slot}_{suffix}"]
            for suffix, key in BOARD_ENV_SUFFIXES.items()
            if environ.get(f"VESTABOARD_{slot}_{suffix}")
        }
        if not values:
            continue
        while len(boards) <= index:
            boards.append({"name": f"Vestaboard {BOARD_ENV_SLOTS[len(boards)].title()}"})
        boards[index] = {**boards[index], **values}

    data["boards"] = boards
    return data


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from an optional YAML file plus the environment.

    Environment variables win over file values.

    Args:
        path: YAML config file; skipped when None or missing
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the file is malformed or validation fails
    """
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is not None:
        config_path = Path(path)
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    "Config file is not valid YAML",
                    details={"path": str(config_path)},
                    cause=e,
                ) from e
            if not isinstance(data, dict):
                raise ConfigurationError(
                    "Config file must contain a mapping",
                    details={"path": str(config_path)},
                )
            logger.info("Loaded config from %s", config_path)
        else:
            logger.info("Config file %s not found, using environment only", config_path)

    try:
        return Config.model_validate(_apply_env(data, environ))
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            details={"errors": "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )},
            cause=e,
        ) from e
