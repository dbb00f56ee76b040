"""Configuration management."""
import logging
import os
from typing import Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config:
    def __init__(self):
        self.LOG_LEVEL: str = os.environ.get("LISTING_QA_LOG_LEVEL", "WARNING").upper()
        self.DEFAULT_MARKETPLACE: str = os.environ.get(
            "LISTING_QA_DEFAULT_MARKETPLACE", "amazon"
        ).lower()
        self.MAX_BATCH: int = int(os.environ.get("LISTING_QA_MAX_BATCH", "500"))

    def validate(self):
        if self.LOG_LEVEL not in LOG_LEVELS:
            raise ValueError(f"Invalid LISTING_QA_LOG_LEVEL: {self.LOG_LEVEL}")
        if self.MAX_BATCH <= 0:
            raise ValueError("LISTING_QA_MAX_BATCH must be positive")
        from listing_qa.platforms import get_marketplace_ids
        if self.DEFAULT_MARKETPLACE not in get_marketplace_ids():
            raise ValueError(
                f"Unknown LISTING_QA_DEFAULT_MARKETPLACE: {self.DEFAULT_MARKETPLACE}"
            )


def configure_logging(level: Optional[str] = None):
    """Apply the configured log level to the package logger."""
    level = (level or config.LOG_LEVEL).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}")
    logging.basicConfig(format="%(asctime)s %(name)s %(levelname)s %(message)s")
    logging.getLogger("listing_qa").setLevel(level)


config = Config()
