"""
Configuration for confsync runs.

Settings live in ``$CONFSYNC_HOME/config.yaml`` and can be overridden
per-field with ``CONFSYNC_<FIELD>`` environment variables:

    default_store: aws-s3
    aws_region: us-east-1
    s3_bucket: team-config
    shipment_api_url: https://shipit.example.net
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError

from . import CONFSYNC_HOME

logger = logging.getLogger("confsync.config")

ENV_PREFIX = "CONFSYNC_"


class Settings(BaseModel):
    """Machine-wide defaults read once per process."""

    default_store: str = "aws-s3"
    catalog_name: str = "confsync.yml"
    log_level: str = "WARNING"

    # AWS stores
    aws_region: str = "us-east-1"
    s3_bucket: Optional[str] = None

    # Shipment store
    shipment_auth_url: str = "http://auth.shipit.local"
    shipment_api_url: str = "http://shipit.local"
    http_timeout: float = 30.0


class UserOptions(BaseModel):
    """Per-invocation choices coming from the command line."""

    prompt_user: bool = True
    default_store: str = "aws-s3"
    force: bool = False


def config_path(home: Optional[Path] = None) -> Path:
    """Return the settings file location for a confsync home."""
    return (home or Path(CONFSYNC_HOME)).expanduser() / "config.yaml"


def load_settings(home: Optional[Path] = None) -> Settings:
    """Load settings from disk and apply environment overrides.

    A missing or broken config file is not fatal; defaults are used
    and the problem is logged.

    Args:
        home: confsync home directory. Defaults to CONFSYNC_HOME.

    Returns:
        Settings: the merged configuration.
    """
    data: dict = {}
    path = config_path(home)
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            data = {}
        if not isinstance(data, dict):
            logger.warning("Ignoring %s: expected a mapping", path)
            data = {}

    for field in Settings.model_fields:
        value = os.environ.get(ENV_PREFIX + field.upper())
        if value is not None:
            data[field] = value

    try:
        return Settings(**data)
    except ValidationError as exc:
        logger.warning("Invalid settings, using defaults: %s", exc)
        return Settings()
