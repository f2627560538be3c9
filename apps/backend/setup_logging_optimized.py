import logging
import os


def setup_logging(level: str = None) -> None:
    """Minimal logging setup for the image pipeline.

    - Sets root logger level (argument, then LOG_LEVEL, then INFO)
    - Ensures a basic StreamHandler is attached once
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """Return a module logger after ensuring logging is initialized."""
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)
