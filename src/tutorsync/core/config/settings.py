"""Top-level configuration."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from tutorsync.core.config.execution import RetryPolicy, TimeoutConfig
from tutorsync.core.config.observability import (
    ConnectivityConfig,
    LogConfig,
    NotificationConfig,
)
from tutorsync.core.config.store import StoreConfig


class TutorsyncConfig(BaseModel):
    """Everything needed to run processing jobs against one project.

    Example YAML:
        retry:
          max_retries: 3
          initial_delay_ms: 500
        timeouts:
          download_seconds: 45
        store:
          url: https://project.example.co
        logging:
          level: DEBUG
    """

    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    connectivity: ConnectivityConfig = Field(default_factory=ConnectivityConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> TutorsyncConfig:
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> TutorsyncConfig:
        """Load configuration from a YAML string."""
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data or {})
