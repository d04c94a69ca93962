import json
import logging
import os
import time
from logging.handlers import RotatingFileHandler

FRONTEND_LOGGER_NAME = "family_money.frontend"

# pywebpush delivers through requests; its connection chatter drowns the push log lines.
_QUIET_LOGGERS = ("urllib3",)


class LocalTimeFormatter(logging.Formatter):
    converter = time.localtime


def _RotatingHandler(path: str, level: str, formatter: logging.Formatter) -> RotatingFileHandler:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=int(os.getenv("LOG_MAX_BYTES", "5000000")),
        backupCount=int(os.getenv("LOG_BACKUP_COUNT", "5")),
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_file_path = os.getenv("LOG_FILE_PATH", "/app/logs/family-money.log")
    frontend_log_file_path = os.getenv(
        "FRONTEND_LOG_FILE_PATH", "/app/logs/family-money-frontend.log"
    )

    formatter = LocalTimeFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(_RotatingHandler(log_file_path, log_level, formatter))

    # Browser console errors land here via POST /api/logs.
    frontend_logger = logging.getLogger(FRONTEND_LOGGER_NAME)
    frontend_logger.handlers.clear()
    frontend_logger.propagate = False
    frontend_logger.setLevel(log_level)
    frontend_logger.addHandler(console_handler)
    frontend_logger.addHandler(_RotatingHandler(frontend_log_file_path, log_level, formatter))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_logger.level))

    logging.getLogger("uvicorn.access").handlers.clear()


def format_frontend_message(message: str, context: dict | None = None) -> str:
    if not context:
        return message
    payload = {"message": message, "context": context}
    return json.dumps(payload, separators=(",", ":"))
