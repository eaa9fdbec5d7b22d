import logging
import json
import sys
import os
from datetime import datetime

from adhdo.config import LOG_FILE

class JsonFormatter(logging.Formatter):
    """Formats logs as JSON lines."""
    def format(self, record):
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        if hasattr(record, "props"):
            log_obj.update(record.props)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)

def setup_logging(log_file: str = LOG_FILE, level: int = logging.INFO):
    """Configures structured logging to file and pretty print to console."""

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    app_logger = logging.getLogger("adhdo")
    app_logger.setLevel(level)

    # Clear existing handlers
    app_logger.handlers = []

    # File Handler (JSONL)
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(JsonFormatter())
    app_logger.addHandler(file_handler)

    # Console Handler (Human Readable)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s'
    ))
    app_logger.addHandler(console_handler)

    return app_logger

# Global logger
logger = setup_logging()
