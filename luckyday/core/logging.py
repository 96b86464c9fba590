import logging
import os


def configure_logging() -> logging.Logger:
    logger = logging.getLogger("luckyday")
    if not logger.handlers:
        logging.basicConfig(
            level=os.getenv("LUCKYDAY_LOG_LEVEL", "INFO").upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    return logger
