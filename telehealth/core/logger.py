# telehealth/core/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from telehealth.core.config import LOG_FILE, LOG_LEVEL

os.makedirs(os.path.dirname(LOG_FILE) or ".", exist_ok=True)

formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(formatter)

# 5MB per file, three backups
file_handler = RotatingFileHandler(
    filename=LOG_FILE,
    maxBytes=5 * 1024 * 1024,
    backupCount=3
)
file_handler.setLevel(LOG_LEVEL)
file_handler.setFormatter(formatter)

logger = logging.getLogger("telehealth")
logger.setLevel(LOG_LEVEL)
logger.addHandler(console_handler)
logger.addHandler(file_handler)
logger.propagate = False


def get_module_logger(name: str) -> logging.Logger:
    """Child of the ``telehealth`` logger, sharing its handlers."""
    return logger.getChild(name)
