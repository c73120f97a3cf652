import logging
import os
import sys


def setup_logging(level: str = None):
    """Configure root logging once per process."""
    level = level or os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
