import logging
import os
from postfacto.config import LOGS_DIR, LOG_FILE

def setup_logging():
    """Set up the root logger to output to console and, optionally, a file."""
    handlers = [logging.StreamHandler()]

    if LOG_FILE:
        # Ensure the logs directory exists
        os.makedirs(LOGS_DIR, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(LOGS_DIR, LOG_FILE)))

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(module)s - %(message)s",
        handlers=handlers
    )

    logger = logging.getLogger(__name__)
    return logger

logger = setup_logging()
