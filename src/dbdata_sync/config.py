from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .errors import ConfigError

DEFAULT_INPUT_FILE = Path("/initdb.json")
DEFAULT_DATA_FOLDER = Path("/dbdata")

_NEXUS_OVERRIDE_KEYS = {
    "base_url",
    "repository",
    "username",
    "password",
    "timeout_seconds",
}


class NexusConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str
    repository: str
    username: str
    password: str = Field(repr=False)
    timeout_seconds: float = Field(default=60.0, gt=0.0)

    @field_validator("base_url", "repository", "username", "password")
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("nexus settings must not be empty")
        return normalized

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("nexus.base_url must start with http:// or https://")
        return value.rstrip("/")


class SyncConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    input_file: Path = DEFAULT_INPUT_FILE
    data_folder: Path = DEFAULT_DATA_FOLDER
    nexus: NexusConfig
    verbose: bool = False

    def require_input_file(self) -> Path:
        if not self.input_file.is_file():
            raise ConfigError(f"The input file '{self.input_file}' does not exist.")
        return self.input_file


def load_config(path: str | Path) -> dict[str, Any]:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    return _parse_yaml_or_json(raw)


def build_config(
    *,
    config_path: str | Path | None = None,
    **overrides: Any,
) -> SyncConfig:
    """Merge an optional config file with explicit overrides and validate.

    Overrides whose value is ``None`` are ignored, so unset CLI options fall
    back to the config file and then to the model defaults. Nexus fields are
    given flat (``base_url=...``) and nested under ``nexus`` here.
    """
    payload: dict[str, Any] = {}
    if config_path is not None:
        payload = load_config(config_path)

    nexus_payload = dict(payload.get("nexus") or {})
    for key, value in overrides.items():
        if value is None:
            continue
        if key in _NEXUS_OVERRIDE_KEYS:
            nexus_payload[key] = value
        else:
            payload[key] = value
    payload["nexus"] = nexus_payload

    try:
        return SyncConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(_describe_validation_error(exc)) from exc


def _describe_validation_error(error: ValidationError) -> str:
    missing = [
        ".".join(str(part) for part in item["loc"])
        for item in error.errors()
        if item["type"] == "missing"
    ]
    if missing:
        return (
            "Nexus URL, repository, username, and password are required. "
            f"missing={','.join(missing)}"
        )
    return f"Invalid configuration: {error}"


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        try:
            parsed = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid configuration file: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ConfigError("Configuration root must be an object.")
    return parsed
