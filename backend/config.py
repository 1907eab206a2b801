"""Application configuration."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

import pydantic
from pydantic import BaseModel, Field, field_validator

from errors import ConfigError

ENV_PREFIX = "PASTABOX_"

ETERNAL = "never"

# Seconds added to the creation time for each expiration choice.
EXPIRATION_SECONDS = {
    "1min": 60,
    "10min": 60 * 10,
    "1hour": 60 * 60,
    "24hour": 60 * 60 * 24,
    "3days": 60 * 60 * 24 * 3,
    "1week": 60 * 60 * 24 * 7,
}
FALLBACK_EXPIRATION = "1week"

# "1" allows an extra read for the redirect that follows creation.
BURN_AFTER_READS = {
    "0": 0,
    "1": 2,
    "10": 10,
    "100": 100,
    "1000": 1000,
    "10000": 10000,
}


class AppConfig(BaseModel):
    data_dir: Path = Path("pasta_data")
    storage: Literal["json", "sqlite"] = "json"

    gc_days: int = Field(default=90, ge=0)
    gc_interval_seconds: int = Field(default=3600, gt=0)

    hash_ids: bool = False
    hash_ids_salt: str = ""
    hash_ids_min_length: int = Field(default=6, ge=0)
    custom_names: Path | None = None

    id_space: int = Field(default=2**16, ge=1)
    id_max_attempts: int = Field(default=64, ge=1)

    no_eternal_pasta: bool = False
    default_expiry: str = "24hour"
    enable_burn_after: bool = False
    default_burn_after: str = "0"
    no_file_upload: bool = False
    readonly: bool = False
    no_listing: bool = False
    private: bool = False
    editable: bool = False

    public_path: str = ""
    pasta_endpoint: str = "pasta"
    raw_endpoint: str = "raw"
    url_endpoint: str = "url"

    auth_username: str | None = None
    auth_password: str | None = None

    bind: str = "0.0.0.0"
    port: int = 8080

    title: str = "Pastabox"
    log_level: str = "INFO"

    @field_validator("default_expiry")
    @classmethod
    def _check_expiry(cls, value: str) -> str:
        if value != ETERNAL and value not in EXPIRATION_SECONDS:
            raise ValueError(f"unknown expiry {value!r}")
        return value

    @field_validator("default_burn_after")
    @classmethod
    def _check_burn_after(cls, value: str) -> str:
        if value not in BURN_AFTER_READS:
            raise ValueError(f"unknown burn-after value {value!r}")
        return value

    @field_validator("public_path")
    @classmethod
    def _strip_public_path(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("pasta_endpoint", "raw_endpoint", "url_endpoint")
    @classmethod
    def _check_endpoint(cls, value: str) -> str:
        value = value.strip("/")
        if not value or "/" in value:
            raise ValueError(f"invalid endpoint {value!r}")
        return value

    @property
    def attachments_dir(self) -> Path:
        return self.data_dir / "attachments"


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build the configuration from PASTABOX_* environment variables."""
    if environ is None:
        environ = os.environ

    values = {}
    for name in AppConfig.model_fields:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is not None and raw.strip() != "":
            values[name] = raw.strip()

    try:
        return AppConfig(**values)
    except pydantic.ValidationError as e:
        raise ConfigError(str(e)) from e
