import logging
from logging.handlers import RotatingFileHandler

from sqlbackup.core.settings import Settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Create logger
logger = logging.getLogger("sqlbackup")


def configure_logging(settings: Settings) -> logging.Logger:
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.WARNING))

    # Prevent duplicate handlers
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

        if settings.log_file is not None:
            # Rotating file handler: max 5 MB per file, keep 3 backups
            settings.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                str(settings.log_file), maxBytes=5 * 1024 * 1024, backupCount=3
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
    return logger


__all__ = ["configure_logging", "logger"]
