import logging

from orgdesk.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "orgdesk"

def setup_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)

    # avoid duplicate handlers on reload
    if logger.handlers:
        return logger

    logger.setLevel(settings.log_level.upper())

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)

    return logger

def get_logger(name: str) -> logging.Logger:
    setup_logger()
    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")

logger = setup_logger()
