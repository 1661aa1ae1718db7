"""
UTXO Indexer - Logging System
===============================
Sistema logging strutturato JSON per audit e debugging.

Last Updated: 2026-10-19
Version: 1.0.0

Features:
- Logging JSON strutturato
- Rotation automatica
- Structured extra_data
- Performance tracking
- Audit trail (blocchi accettati, rollback)
"""

import logging
import logging.handlers
import json
import sys
import time
import traceback
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timezone


ROOT_LOGGER_NAME = "utxo_indexer"


def _utc(created: float) -> datetime:
    return datetime.fromtimestamp(created, tz=timezone.utc)


# ============================================================================
# JSON FORMATTER
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    Formatter per log in formato JSON.

    Output structure:
    {
        "timestamp": "2026-10-19T10:00:00.000000Z",
        "level": "INFO",
        "logger": "utxo_indexer.ledger",
        "message": "Block applied",
        "extra_data": {...},
        "exception": {...}
    }
    """

    def __init__(
        self,
        include_extra: bool = True,
        include_stack: bool = True
    ):
        super().__init__()
        self.include_extra = include_extra
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": _utc(record.created).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.thread:
            log_data["thread_id"] = record.thread
            log_data["thread_name"] = record.threadName

        if record.process:
            log_data["process_id"] = record.process

        if self.include_extra and hasattr(record, 'extra_data'):
            log_data["extra_data"] = record.extra_data

        if record.exc_info and self.include_stack:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_data, default=str)


# ============================================================================
# TEXT FORMATTER (Human-Readable)
# ============================================================================

class ColoredTextFormatter(logging.Formatter):
    """Formatter colorato per console."""

    COLORS = {
        'DEBUG': '\033[90m',      # Gray
        'INFO': '\033[92m',       # Green
        'WARNING': '\033[93m',    # Yellow
        'ERROR': '\033[91m',      # Red
        'CRITICAL': '\033[1;91m', # Bold Red
        'RESET': '\033[0m'
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"

        timestamp = _utc(record.created).strftime('%Y-%m-%d %H:%M:%S')
        message = f"{timestamp} [{levelname}] {record.name}: {record.getMessage()}"

        if hasattr(record, 'extra_data'):
            message += f" | {record.extra_data}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


# ============================================================================
# LOGGER CLASS
# ============================================================================

class IndexerLogger:
    """
    Wrapper logger con structured logging (extra_data).

    Example:
        >>> logger = get_logger("ledger")
        >>> logger.info("Block applied", extra_data={"height": 12})
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _log(
        self,
        level: int,
        message: str,
        extra_data: Optional[Dict[str, Any]] = None,
        exc_info=None
    ):
        self._logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={'extra_data': extra_data} if extra_data else {}
        )

    def debug(self, message: str, extra_data: Optional[Dict] = None):
        self._log(logging.DEBUG, message, extra_data)

    def info(self, message: str, extra_data: Optional[Dict] = None):
        self._log(logging.INFO, message, extra_data)

    def warning(self, message: str, extra_data: Optional[Dict] = None):
        self._log(logging.WARNING, message, extra_data)

    def error(self, message: str, extra_data: Optional[Dict] = None, exc_info=None):
        self._log(logging.ERROR, message, extra_data, exc_info)


# ============================================================================
# SETUP FUNCTION
# ============================================================================

def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = True,
    log_dir: Path = Path("./logs"),
    log_format: str = "json",
    log_rotation_mb: int = 100,
    log_retention_days: int = 30,
    enable_console: bool = True,
) -> IndexerLogger:
    """
    Setup logging system completo.

    Args:
        log_level: Level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Salva su file
        log_dir: Directory log files
        log_format: Formato file (json, text)
        log_rotation_mb: MB prima rotation
        log_retention_days: Numero backup mantenuti
        enable_console: Log anche su console

    Returns:
        IndexerLogger: Logger root configurato
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "utxo_indexer.log",
            maxBytes=log_rotation_mb * 1024 * 1024,
            backupCount=log_retention_days,
            encoding='utf-8'
        )

        if log_format == "json":
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            )

        root_logger.addHandler(file_handler)

        # Separate error log
        error_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "utxo_indexer_errors.log",
            maxBytes=log_rotation_mb * 1024 * 1024,
            backupCount=log_retention_days,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter(include_stack=True))
        root_logger.addHandler(error_handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(ColoredTextFormatter())
        root_logger.addHandler(console_handler)

    return IndexerLogger(root_logger)


# ============================================================================
# CATEGORY LOGGERS
# ============================================================================

def get_logger(category: str) -> IndexerLogger:
    """
    Ottieni logger per categoria specifica.

    Args:
        category: Categoria (storage, validation, ledger, api, ...)

    Returns:
        IndexerLogger: Logger per categoria
    """
    return IndexerLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}"))


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

class PerformanceLogger:
    """
    Context manager per tracking performance.

    Example:
        >>> with PerformanceLogger(logger, "validate_block"):
        ...     validator.validate(block, height, lookup)
        # Logs: "validate_block completed in 0.12ms"
    """

    def __init__(
        self,
        logger: IndexerLogger,
        operation: str,
        threshold_ms: Optional[int] = None
    ):
        self.logger = logger
        self.operation = operation
        self.threshold_ms = threshold_ms
        self.start_time = None
        self.elapsed_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000

        extra = {
            "operation": self.operation,
            "duration_ms": round(self.elapsed_ms, 2),
            "failed": exc_type is not None,
        }

        if self.threshold_ms and self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation} took {self.elapsed_ms:.2f}ms "
                f"(threshold: {self.threshold_ms}ms)",
                extra_data=extra
            )
        else:
            self.logger.debug(
                f"{self.operation} completed in {self.elapsed_ms:.2f}ms",
                extra_data=extra
            )


# ============================================================================
# AUDIT LOGGER
# ============================================================================

class AuditLogger:
    """
    Logger specializzato per audit trail.

    Records every state transition of the ledger: accepted blocks and
    rollbacks. Written as JSON lines to ``<log_dir>/audit.log`` without
    rotation.
    """

    def __init__(self, log_dir: Path = Path("./logs")):
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.audit_file = log_dir / "audit.log"

        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.audit")
        self.logger.setLevel(logging.INFO)

        # One handler per audit file, even if several services are built
        target = str(self.audit_file.resolve())
        if not any(
            getattr(h, "baseFilename", None) == target for h in self.logger.handlers
        ):
            handler = logging.FileHandler(self.audit_file, encoding='utf-8')
            handler.setFormatter(JSONFormatter(include_extra=True))
            self.logger.addHandler(handler)

    def _emit(self, message: str, data: Dict[str, Any]):
        data["timestamp"] = datetime.now(timezone.utc).isoformat()
        self.logger.info(message, extra={'extra_data': data})

    def log_block_applied(self, height: int, block_id: str, tx_count: int):
        """Log block acceptance"""
        self._emit("Block applied", {
            "action": "block_applied",
            "height": height,
            "block_id": block_id,
            "tx_count": tx_count,
        })

    def log_rollback(self, from_height: int, to_height: int, removed_blocks: int):
        """Log rollback"""
        self._emit("Ledger rolled back", {
            "action": "rollback",
            "from_height": from_height,
            "to_height": to_height,
            "removed_blocks": removed_blocks,
        })


__all__ = [
    "setup_logging",
    "get_logger",
    "IndexerLogger",
    "PerformanceLogger",
    "AuditLogger",
    "JSONFormatter",
    "ColoredTextFormatter",
]
