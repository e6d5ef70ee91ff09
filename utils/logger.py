import atexit
import logging
import sys
from logging.handlers import RotatingFileHandler, QueueHandler, QueueListener
from queue import Queue
from pathlib import Path
from config.settings import LOG_LEVEL, LOG_FILE, LOG_TO_CONSOLE

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# One queue + one listener per log file so the API workers never block on disk I/O.
_LISTENERS_BY_FILE: dict[str, QueueListener] = {}
_QUEUES_BY_FILE: dict[str, Queue] = {}


def _ensure_listener(log_file: str, max_bytes: int, backup_count: int, console: bool) -> QueueHandler:
    log_file = str(Path(log_file))
    if log_file in _LISTENERS_BY_FILE:
        return QueueHandler(_QUEUES_BY_FILE[log_file])

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    q: Queue = Queue(-1)
    _QUEUES_BY_FILE[log_file] = q

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(
        log_file,
        mode="a",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
        delay=True,
    )
    file_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [file_handler]

    if console:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        handlers.append(stream_handler)

    listener = QueueListener(q, *handlers, respect_handler_level=True)
    listener.start()
    _LISTENERS_BY_FILE[log_file] = listener

    # Flush buffers and close file handles on interpreter exit
    def _stop_listener():
        try:
            listener.stop()
        except Exception:
            pass

    atexit.register(_stop_listener)

    return QueueHandler(q)


def setup_logger(
    name: str,
    log_file: str = LOG_FILE,
    level=LOG_LEVEL,
    max_bytes: int = 1024 * 1024 * 5,
    backup_count: int = 6,
    console: bool = LOG_TO_CONSOLE,
):
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Avoid duplicate handlers when a module is re-imported
    if not logger.handlers:
        qh = _ensure_listener(log_file, max_bytes, backup_count, console)
        qh.setLevel(level)
        logger.addHandler(qh)

    return logger
