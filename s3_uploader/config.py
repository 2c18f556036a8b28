"""Configuration loading for the S3 uploader.

Supports three configuration sources:
1. Environment variables - takes priority
2. A .env file in the working directory (loaded into the environment
   without overriding variables that are already set)
3. A JSON config file (for local development)

Environment Variables:
    AWS_ACCESS_KEY_ID=xxx          (required)
    AWS_SECRET_ACCESS_KEY=xxx      (required)
    S3_BUCKET_NAME=my-bucket       (required)
    AWS_REGION=eu-north-1
    S3_ENDPOINT_URL=https://...    (S3-compatible services)
    S3_ENDPOINT_SUFFIX=amazonaws.com
    S3_ADDRESSING_STYLE=virtual
    S3_CONNECT_TIMEOUT=10
    S3_READ_TIMEOUT=60
"""

import json
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from s3_uploader.models import UploaderConfig


class ConfigError(Exception):
    """Raised when configuration loading fails."""

    pass


DEFAULT_REGION = "eu-north-1"

# Required fields for a JSON configuration file
REQUIRED_FIELDS = [
    "bucket_name",
    "aws_access_key_id",
    "aws_secret_access_key",
]

# Required environment variables
REQUIRED_ENV_VARS = [
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "S3_BUCKET_NAME",
]


def _parse_timeout(name: str, value) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid number for {name}: {value!r}") from e
    if timeout <= 0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return timeout


def load_from_json(config_path: str) -> UploaderConfig:
    """Load the uploader configuration from a JSON file.

    Args:
        config_path: Path to the JSON config file.

    Returns:
        UploaderConfig built from the file.

    Raises:
        ConfigError: If file doesn't exist, contains invalid JSON,
                    or is missing required fields.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    for field in REQUIRED_FIELDS:
        if not data.get(field):
            raise ConfigError(f"Missing required field '{field}' in {config_path}")

    return UploaderConfig(
        bucket_name=data["bucket_name"],
        region_name=data.get("region_name") or DEFAULT_REGION,
        aws_access_key_id=data["aws_access_key_id"],
        aws_secret_access_key=data["aws_secret_access_key"],
        endpoint_url=data.get("endpoint_url"),
        endpoint_suffix=data.get("endpoint_suffix", "amazonaws.com"),
        addressing_style=data.get("addressing_style", "virtual"),
        connect_timeout=_parse_timeout("connect_timeout", data.get("connect_timeout", 10.0)),
        read_timeout=_parse_timeout("read_timeout", data.get("read_timeout", 60.0)),
    )


def load_from_env(bucket: Optional[str] = None) -> UploaderConfig:
    """Load the uploader configuration from environment variables.

    Args:
        bucket: Bucket name to use when S3_BUCKET_NAME is not set.

    Returns:
        UploaderConfig built from the environment.

    Raises:
        ConfigError: If a required variable is missing or a timeout
                    is not a positive number.
    """
    for var in REQUIRED_ENV_VARS:
        if var == "S3_BUCKET_NAME" and bucket:
            continue
        if not os.environ.get(var):
            raise ConfigError(f"Missing environment variable: {var}")

    return UploaderConfig(
        bucket_name=os.environ.get("S3_BUCKET_NAME") or bucket,
        region_name=os.environ.get("AWS_REGION") or DEFAULT_REGION,
        aws_access_key_id=os.environ["AWS_ACCESS_KEY_ID"],
        aws_secret_access_key=os.environ["AWS_SECRET_ACCESS_KEY"],
        endpoint_url=os.environ.get("S3_ENDPOINT_URL") or None,
        endpoint_suffix=os.environ.get("S3_ENDPOINT_SUFFIX") or "amazonaws.com",
        addressing_style=os.environ.get("S3_ADDRESSING_STYLE") or "virtual",
        connect_timeout=_parse_timeout(
            "S3_CONNECT_TIMEOUT", os.environ.get("S3_CONNECT_TIMEOUT", "10")
        ),
        read_timeout=_parse_timeout(
            "S3_READ_TIMEOUT", os.environ.get("S3_READ_TIMEOUT", "60")
        ),
    )


def has_env_config(bucket: Optional[str] = None) -> bool:
    """Check if the environment provides every required variable.

    S3_BUCKET_NAME is not needed when a bucket override is given.
    """
    return all(
        os.environ.get(var)
        for var in REQUIRED_ENV_VARS
        if not (var == "S3_BUCKET_NAME" and bucket)
    )


def load_config(
    config_path: Optional[str] = None,
    env_file: Optional[str] = ".env",
    bucket: Optional[str] = None,
    region: Optional[str] = None,
) -> UploaderConfig:
    """Load the uploader configuration with environment priority.

    Priority order:
    1. Environment variables (after merging in the .env file), when all
       required ones are set or no config file is given
    2. JSON config file

    Args:
        config_path: Path to a JSON config file (used as fallback).
        env_file: .env file to load; None to skip.
        bucket: Overrides the configured bucket name.
        region: Overrides the configured region.

    Returns:
        UploaderConfig ready to build a client from.

    Raises:
        ConfigError: If no source provides a complete configuration.
    """
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    if has_env_config(bucket) or not config_path:
        config = load_from_env(bucket)
    else:
        config = load_from_json(config_path)

    if bucket:
        config.bucket_name = bucket
    if region:
        config.region_name = region

    return config
