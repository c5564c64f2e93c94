import logging
import os
import sys
from datetime import datetime

from dubhub.core.config import settings

handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

# file output only when a log directory is configured
if settings.LOG_DIR:
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    handlers.append(
        logging.FileHandler(
            os.path.join(settings.LOG_DIR, f'dubhub_{datetime.now().strftime("%Y%m%d")}.log'),
            mode='a',
            encoding='utf-8',
        )
    )

# configure structured logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=handlers,
)

# multipart parsing is chatty at debug level
logging.getLogger("multipart").setLevel(logging.WARNING)

def get_logger(name: str) -> logging.Logger:
    """get a configured logger instance"""
    return logging.getLogger(name)
