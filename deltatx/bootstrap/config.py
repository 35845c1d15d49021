"""
bootstrap/config.py - Configuration loading

Provides configuration from JSON files, environment variables, and defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from pathlib import Path
import os
import json
import logging

logger = logging.getLogger("deltatx.bootstrap.config")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class TransactionConfig:
    """Transaction behaviour settings."""

    log_writes: bool = False  # Append a "set" entry for every view write
    strict_rollback: bool = False  # Raise on rollback(id) to an unknown id
    default_timeout_ms: float = 0  # Used by timeout() when msec is None
    daemon_timers: bool = True  # Timer threads do not block interpreter exit

    @classmethod
    def from_env(cls) -> "TransactionConfig":
        return cls(
            log_writes=_env_flag("DELTATX_LOG_WRITES", "false"),
            strict_rollback=_env_flag("DELTATX_STRICT_ROLLBACK", "false"),
            default_timeout_ms=float(os.getenv("DELTATX_DEFAULT_TIMEOUT_MS", "0")),
            daemon_timers=_env_flag("DELTATX_DAEMON_TIMERS", "true"),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=os.getenv("DELTATX_LOG_LEVEL", "INFO"),
            format=os.getenv("DELTATX_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("DELTATX_LOG_FILE"),
            json_logs=_env_flag("DELTATX_JSON_LOGS", "false"),
        )


@dataclass
class DeltaTxConfig:
    """Root configuration."""

    environment: str = "development"
    debug: bool = False

    transactions: TransactionConfig = field(default_factory=TransactionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "DeltaTxConfig":
        """Create configuration from environment variables."""
        return cls(
            environment=os.getenv("DELTATX_ENVIRONMENT", "development"),
            debug=_env_flag("DELTATX_DEBUG", "false"),
            transactions=TransactionConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "DeltaTxConfig":
        """Load configuration from JSON file."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls.from_env()

        with open(path) as f:
            data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "DeltaTxConfig":
        """Create config from dictionary, on top of the environment."""
        config = cls.from_env()

        if "environment" in data:
            config.environment = data["environment"]
        if "debug" in data:
            config.debug = data["debug"]

        for section in ("transactions", "logging"):
            target = getattr(config, section)
            for key, value in data.get(section, {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.warning(f"Ignoring unknown config key: {section}.{key}")

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "transactions": {
                "log_writes": self.transactions.log_writes,
                "strict_rollback": self.transactions.strict_rollback,
                "default_timeout_ms": self.transactions.default_timeout_ms,
                "daemon_timers": self.transactions.daemon_timers,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "log_file": self.logging.log_file,
                "json_logs": self.logging.json_logs,
            },
        }


# Global config instance
_config: Optional[DeltaTxConfig] = None


def load_config(filepath: str = None) -> DeltaTxConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to JSON config file

    Returns:
        DeltaTxConfig instance
    """
    global _config

    if filepath:
        _config = DeltaTxConfig.from_file(filepath)
    else:
        default_paths = [
            "./deltatx.json",
            os.path.expanduser("~/.deltatx/config.json"),
        ]

        for path in default_paths:
            if Path(path).exists():
                logger.info(f"Loading config from: {path}")
                _config = DeltaTxConfig.from_file(path)
                return _config

        _config = DeltaTxConfig.from_env()

    logger.debug(f"Configuration loaded: environment={_config.environment}")
    return _config


def get_config() -> DeltaTxConfig:
    """Get current configuration, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the loaded configuration; the next get_config() reloads it."""
    global _config
    _config = None
