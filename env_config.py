#env_config.py
import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import boto3
from botocore.config import Config

from app_backup.backup_errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 1.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class BackupConfig:
    table_name: str
    region: str
    bucket: str
    max_consumed_capacity: float
    tick_seconds: float = DEFAULT_TICK_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL


def _env_must(environ: Mapping[str, str], key: str) -> str:
    value = (environ.get(key) or "").strip()
    logger.info(f"{key}: {value}")
    if not value:
        raise ConfigurationError(f"Environment variable {key} does not exist")
    return value


def _parse_float(key: str, raw: str, minimum: float, inclusive: bool) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"Unable to convert {key} to a number: {raw!r}") from None
    if not math.isfinite(value):
        raise ConfigurationError(f"{key} must be a finite number, got {raw}")
    if value < minimum or (not inclusive and value == minimum):
        bound = ">=" if inclusive else ">"
        raise ConfigurationError(f"{key} must be {bound} {minimum}, got {raw}")
    return value


def load_config(environ: Optional[Mapping[str, str]] = None, **overrides) -> BackupConfig:
    """
    Read the job settings from the environment. Keyword overrides (e.g. from
    the command line) win over environment values when not None.

    Required: DYNAMODB_TABLE, DYNAMODB_REGION, BACKUP_BUCKET, MAX_CAPACITY.
    Optional: TICK_SECONDS, LOG_LEVEL.
    """
    env = dict(os.environ if environ is None else environ)
    names = {
        "table_name": "DYNAMODB_TABLE",
        "region": "DYNAMODB_REGION",
        "bucket": "BACKUP_BUCKET",
        "max_consumed_capacity": "MAX_CAPACITY",
        "tick_seconds": "TICK_SECONDS",
        "log_level": "LOG_LEVEL",
    }
    for field_name, value in overrides.items():
        if value is not None:
            env[names[field_name]] = str(value)

    max_capacity = _parse_float("MAX_CAPACITY", _env_must(env, "MAX_CAPACITY"), 0.0, inclusive=False)
    tick_raw = (env.get("TICK_SECONDS") or "").strip()
    tick_seconds = (
        _parse_float("TICK_SECONDS", tick_raw, 0.0, inclusive=True) if tick_raw else DEFAULT_TICK_SECONDS
    )

    return BackupConfig(
        table_name=_env_must(env, "DYNAMODB_TABLE"),
        region=_env_must(env, "DYNAMODB_REGION"),
        bucket=_env_must(env, "BACKUP_BUCKET"),
        max_consumed_capacity=max_capacity,
        tick_seconds=tick_seconds,
        log_level=(env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper(),
    )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)


def get_clients(config: BackupConfig, profile: Optional[str] = None):
    """
    Low-level DynamoDB and S3 clients for the configured region. Retries are
    disabled in botocore; a failed request fails the run.
    """
    session_kwargs = {}
    if profile:
        session_kwargs["profile_name"] = profile
    session = boto3.Session(**session_kwargs)
    client_config = Config(retries={"max_attempts": 0})

    dynamodb = session.client("dynamodb", region_name=config.region, config=client_config)
    s3 = session.client("s3", region_name=config.region, config=client_config)
    return dynamodb, s3
