import os
import sys
import logging
import datetime

from typing import TextIO
from typing import Optional

logger = logging.getLogger(__name__)

LOG_FILE_ENV_KEY = "STORYBLOK_AUDIT_LOG_PATH"
DEFAULT_LOG_DIR = os.path.join("logs", "assets_audit")
DEFAULT_LOG_PREFIX = "assets_audit"
DEFAULT_MAX_LOG_FILES = 10
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_runtime_logging(
    log_dir: str = DEFAULT_LOG_DIR,
    log_prefix: str = DEFAULT_LOG_PREFIX,
    max_files: int = DEFAULT_MAX_LOG_FILES,
    level: int = logging.INFO,
    stream: Optional[TextIO] = None
) -> str:
    """Configure stream + file logging and cleanup old log files.

    Args:
        log_dir: Log directory path.
        log_prefix: Log file name prefix.
        max_files: Max log files to retain.
        level: Root logger level.
        stream: Console stream, stdout when omitted.
    """

    log_path = _new_run_log_path(log_dir = log_dir, log_prefix = log_prefix)
    formatter = logging.Formatter(DEFAULT_LOG_FORMAT)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(stream = stream or sys.stdout)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    file_handler = logging.FileHandler(log_path, encoding = "utf-8")
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    root_logger.setLevel(level)
    os.environ[LOG_FILE_ENV_KEY] = log_path
    _cleanup_old_log_files(
        log_dir = log_dir,
        log_prefix = log_prefix,
        max_files = max_files
    )
    logger.info("main log file ready: %s", log_path)
    return log_path


def set_log_level(level: int) -> None:
    """Change the root logger level after configuration.

    Args:
        level: Root logger level.
    """

    logging.getLogger().setLevel(level)


def _new_run_log_path(log_dir: str, log_prefix: str) -> str:
    """Build one per-run log file path.

    Args:
        log_dir: Log directory path.
        log_prefix: Log file name prefix.
    """

    os.makedirs(log_dir, exist_ok = True)
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filename = f"{log_prefix}_{timestamp}_{os.getpid()}.log"
    return os.path.join(log_dir, filename)


def _cleanup_old_log_files(log_dir: str, log_prefix: str, max_files: int) -> None:
    """Keep only the latest log files under one prefix.

    Args:
        log_dir: Log directory path.
        log_prefix: Log file name prefix.
        max_files: Max log files to retain.
    """

    if max_files < 1:
        return

    try:
        filenames = os.listdir(log_dir)
    except FileNotFoundError:
        return

    candidates = []
    for filename in filenames:
        if not filename.startswith(f"{log_prefix}_") or not filename.endswith(".log"):
            continue
        full_path = os.path.join(log_dir, filename)
        if not os.path.isfile(full_path):
            continue
        candidates.append(full_path)

    candidates.sort(
        key = lambda path: os.path.getmtime(path),
        reverse = True
    )
    for stale_path in candidates[max_files:]:
        try:
            os.remove(stale_path)
        except OSError:
            continue
