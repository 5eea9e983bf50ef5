"""
Bluejay - Structured Logging Configuration

Every module logs through ``logging.getLogger(__name__)`` and puts its
structured fields in ``extra``; this module attaches JSON handlers to the
``bluejay`` package logger so those fields come out as one JSON object per
line:

    {"timestamp": "...", "level": "info", "name": "bluejay.core.vesting.ledger",
     "message": "...", "event": "vesting.payout", "amount": 1000,
     "network": "testnet", "service": "bluejay", "source": {...}}

Usage:
    from bluejay.core.logging_config import setup_logging

    setup_logging(level="DEBUG", log_file="logs/vesting.json")
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger

PACKAGE_LOGGER = "bluejay"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def short_address(address: str, width: int = 10) -> str:
    """Truncated, lowercased address for log fields."""
    return address.lower()[:width]


class VestingJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter stamping each record with the network and service it came from.
    """

    def __init__(self, network: str = "testnet", service_name: str = PACKAGE_LOGGER):
        super().__init__(fmt="%(timestamp)s %(level)s %(name)s %(message)s")
        self.network = network
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = record.levelname.lower()
        log_record["network"] = self.network
        log_record["service"] = self.service_name
        log_record["source"] = {
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }


def _resolve_level(level: str) -> int:
    name = level.upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}")
    return getattr(logging, name)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    network: str = "testnet",
    name: str = PACKAGE_LOGGER,
    enable_console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Attach JSON handlers to the package logger, replacing any from a previous call.

    Args:
        level: Logging level name
        log_file: Rotating JSON log file (optional)
        network: Network label added to every record
        name: Logger to configure; child module loggers propagate to it
        enable_console: Whether to log to stderr (stdout stays free for CLI output)
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured logger
    """
    numeric_level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = VestingJsonFormatter(network=network, service_name=name.split(".")[0])

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(
                "Could not open log file %s: %s",
                log_file,
                e,
                extra={"event": "logging.file_handler_failed"},
            )

    return logger
