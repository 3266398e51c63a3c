import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DEFAULT_LEVEL = logging.INFO


def get_logger(name: str | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=_DEFAULT_LEVEL, format=LOG_FORMAT)
    return logger


def enable_file_log(path: str, level: int = logging.INFO) -> logging.Handler:
    """Append package log records to ``path``.

    Returns the handler so callers can detach it again. Adding the same file
    twice returns the handler that is already attached.
    """
    path = os.path.abspath(path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    logger = logging.getLogger("work2word")
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == path:
            return handler
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    if logger.level == logging.NOTSET or logger.level > level:
        logger.setLevel(level)
    return handler


def disable_file_log(handler: logging.Handler):
    logger = logging.getLogger("work2word")
    logger.removeHandler(handler)
    handler.close()
