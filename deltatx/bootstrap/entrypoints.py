"""
bootstrap/entrypoints.py - Logging setup and demo entry point

Provides setup_logging() and the `deltatx-demo` console script.
"""

from __future__ import annotations
from typing import Optional
import argparse
import json
import logging
import sys

from .config import LoggingConfig, load_config

logger = logging.getLogger("deltatx.bootstrap.entrypoints")


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps({
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        })


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    fmt: str = LoggingConfig.format,
) -> None:
    """
    Configure logging for the deltatx loggers.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON format for logs
        fmt: Format string for plain-text logs
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JSONFormatter() if json_format else logging.Formatter(fmt)

    package_logger = logging.getLogger("deltatx")
    package_logger.setLevel(log_level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    package_logger.addHandler(console_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        package_logger.addHandler(file_handler)


def setup_logging_from_config(config: LoggingConfig) -> None:
    setup_logging(
        level=config.level,
        log_file=config.log_file,
        json_format=config.json_logs,
        fmt=config.format,
    )


def demo_main(args: list = None) -> int:
    """
    Replay the reference usage scenarios and print the results.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        description="Transactional overlay demo",
        prog="deltatx-demo",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides config)",
    )
    parsed = parser.parse_args(args)

    config = load_config(parsed.config)
    if parsed.log_level:
        config.logging.level = parsed.log_level
    setup_logging_from_config(config.logging)

    from ..transactions import DatasetTransaction, Transaction

    data = {"name": "Marcus Aurelius", "born": 121}
    txn = Transaction.start(data, config=config.transactions)
    txn.view["name"] = "Mao Zedong"
    txn.view["born"] = 1893
    txn.view["city"] = "Shaoshan"
    print(f"delta:  {txn.delta.to_dict()}")
    txn.commit()
    print(f"data:   {data}")
    txn.view["born"] = 1976
    txn.rollback()
    print(f"data:   {data}")

    dataset = [{"name": "Marcus Aurelius", "born": 121} for _ in range(3)]
    fan_out = DatasetTransaction.start(dataset, config=config.transactions)
    for person in fan_out:
        person["city"] = "Shaoshan"
    fan_out.commit()
    print(f"commit: {dataset}")
    fan_out.rollback(0)
    print(f"rollback(0): {dataset}")
    print(json.dumps(fan_out.log.to_list(), indent=2, default=str))
    return 0
