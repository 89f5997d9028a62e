"""Runtime configuration — env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
SPMON_* environment variables; command-line options override both.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class SpmonConfig(BaseSettings):
    """spmon settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SPMON_BROKER=mqtt.local:1883
        export SPMON_GROUP=plant1
        export SPMON_LOG_LEVEL=DEBUG

    Or via .env file::

        SPMON_NODE=gateway02
        SPMON_TOPICS='["factory/#"]'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SPMON_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # MQTT session
    broker: str = "localhost:1883"
    topics: list[str] = []  # extra subscriptions on top of the defaults
    client_id_prefix: str = "spmon"
    reconnect_interval_seconds: int = 3

    # Sparkplug B rebirth fallback target
    group: str = "tedge"
    node: str = "gateway01"
    rebirth_status_seconds: float = 3.0

    # Timeline and channels
    capacity: int = 500
    message_queue_depth: int = 256
    connectivity_queue_depth: int = 4

    # Display
    refresh_hz: float = 10.0

    # Logging; the interactive monitor writes to log_file
    log_level: str = "INFO"
    log_file: Path = Path(".spmon/spmon.log")


# Module-level singleton: import as `from spmon.config import config`
config = SpmonConfig()


def configure_logging(level: str, log_file: Path | None = None) -> None:
    """Configure the root logger.

    With *log_file* the records go to that file (parent directories are
    created); otherwise to stderr.
    """
    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())
