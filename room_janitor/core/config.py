# room_janitor/core/config.py

from __future__ import annotations

import argparse
import logging
import os
from typing import Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, SecretStr, ValidationError, field_validator

from room_janitor.core.errors import ConfigurationError

# Settings field -> environment variable
ENV_VARS: Dict[str, str] = {
    "token": "HIPCHAT_TOKEN",
    "url": "HIPCHAT_URL",
    "interval": "JANITOR_INTERVAL",
    "max_days": "JANITOR_MAX",
    "insecure": "JANITOR_INSECURE",
    "health_port": "HEALTH_PORT",
    "metrics_port": "METRICS_PORT",
    "log_level": "LOG_LEVEL",
}

# Settings field -> CLI flag name, used in operator messages
FLAG_NAMES: Dict[str, str] = {
    "token": "token",
    "url": "url",
    "interval": "interval",
    "max_days": "max",
    "insecure": "insecure",
    "health_port": "health-port",
    "metrics_port": "metrics-port",
    "log_level": "log-level",
}


class Settings(BaseModel):
    """
    Startup parameters of the janitor.

        - token: HipChat API token (required)
        - url: HipChat API root, including the version segment (required)
        - interval: how often sweeps run, in hours
        - max_days: rooms idle for at least this many days are archived
        - insecure: skip TLS certificate verification for API calls
        - health_port / metrics_port: listeners for the observability apps
        - log_level: root logger level name
    """

    token: SecretStr
    url: str
    interval: int = 24
    max_days: int = 30
    insecure: bool = False
    health_port: int = 3000
    metrics_port: int = 3001
    log_level: str = "INFO"

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("The 'token' flag is required for communications with HipChat.")
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("The 'url' flag must be set to a valid HipChat server URL.")
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"Fatal: could not parse URL flag: {v!r} is not an absolute http(s) URL")
        return v

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("The 'interval' flag must be set to a number greater than zero.")
        return v

    @field_validator("max_days")
    @classmethod
    def validate_max_days(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("The 'max' flag must be set to a number greater than zero.")
        return v

    @field_validator("health_port", "metrics_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port {v} is outside 1-65535")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        name = v.upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown log level {v!r}")
        return name


def build_parser() -> argparse.ArgumentParser:
    # Values stay strings here; Settings does the type checks so that every
    # bad value ends up in a single ConfigurationError.
    parser = argparse.ArgumentParser(
        prog="room-janitor",
        description="Archive private HipChat rooms that have been idle for too long.",
    )
    parser.add_argument("--token", help="The HipChat API token.")
    parser.add_argument("--url", help="The HipChat server URL.")
    parser.add_argument("--interval", help="How often cleanups are attempted, in hours. (default: 24)")
    parser.add_argument("--max", dest="max_days", help="The maximum amount of time to keep a room, in days. (default: 30)")
    parser.add_argument(
        "--insecure",
        action="store_true",
        default=None,
        help="Skip certificate verification for HTTPS requests.",
    )
    parser.add_argument("--health-port", dest="health_port", help="Port of the /health listener. (default: 3000)")
    parser.add_argument("--metrics-port", dest="metrics_port", help="Port of the /metrics listener. (default: 3001)")
    parser.add_argument("--log-level", dest="log_level", help="Logging level. (default: INFO)")
    return parser


def _format_errors(exc: ValidationError) -> List[str]:
    messages = []
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else ""
        error = err.get("ctx", {}).get("error")
        if err["type"] == "value_error" and error is not None:
            messages.append(str(error))
        elif err["type"] == "missing":
            messages.append(f"The '{FLAG_NAMES.get(field, field)}' flag is required.")
        else:
            messages.append(f"Invalid value for '{FLAG_NAMES.get(field, field)}': {err['msg']}")
    return messages


def load_settings(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from defaults, environment variables and CLI flags.

    Flags win over the environment. When no explicit environment is given,
    a .env file is loaded into os.environ first.

    Raises:
        ConfigurationError: with one message per invalid parameter
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    raw: Dict[str, object] = {"token": "", "url": ""}
    for field, env_name in ENV_VARS.items():
        value = environ.get(env_name)
        if value is not None and value != "":
            raw[field] = value

    args = build_parser().parse_args(argv)
    for field, value in vars(args).items():
        if value is not None:
            raw[field] = value

    try:
        return Settings(**raw)
    except ValidationError as exc:
        raise ConfigurationError(_format_errors(exc)) from exc
