"""
bootstrap/ - Configuration and logging setup

Provides configuration loading and logging initialization.
"""

from .config import (
    DeltaTxConfig,
    TransactionConfig,
    LoggingConfig,
    load_config,
    get_config,
    reset_config,
)

from .entrypoints import (
    JSONFormatter,
    setup_logging,
    setup_logging_from_config,
    demo_main,
)

__all__ = [
    # Config
    "DeltaTxConfig",
    "TransactionConfig",
    "LoggingConfig",
    "load_config",
    "get_config",
    "reset_config",
    # Entry points
    "JSONFormatter",
    "setup_logging",
    "setup_logging_from_config",
    "demo_main",
]
