import logging
import os

from tqdm import tqdm

LOGGER_NAME = "ftl_editor"
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class TqdmLoggingHandler(logging.StreamHandler):
    """Console handler that prints through ``tqdm.write`` so per-file progress bars stay intact."""

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=self.stream)
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


def _file_handler(log_file_path: str) -> logging.FileHandler:
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    return logging.FileHandler(log_file_path, encoding='utf-8')


def setup_logger(log_level_str: str, log_file_path: str, log_to_console: bool) -> logging.Logger:
    """
    Configure the ``ftl_editor`` logger.

    Modules log through ``logging.getLogger(__name__)``, so their records reach
    the handlers installed here. Calling this again replaces (and closes) the
    handlers of the previous call.

    Args:
        log_level_str: Level name such as 'INFO' or 'debug'. Unknown names mean INFO.
        log_file_path: File that receives every record. Its directory is created.
        log_to_console: Also print records to stderr through tqdm.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)

    level = logging.getLevelName(log_level_str.upper())
    logger.setLevel(level if isinstance(level, int) else logging.INFO)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    handlers = [_file_handler(log_file_path)]
    if log_to_console:
        handlers.append(TqdmLoggingHandler())

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
