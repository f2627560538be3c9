"""
Environment-specific logging configuration
"""
import logging
import os
from typing import Dict, Any

from agents.generation.config import LogConfig


def get_logging_config() -> Dict[str, Any]:
    """Get logging configuration based on environment"""

    is_production = os.getenv("ENV") == "production"
    is_debug = os.getenv("DEBUG", "false").lower() == "true"

    config = {
        "production": {
            # Per-slide chatter is hidden, run summaries and failures stay
            "default_level": "WARNING",
            "console_format": "%(levelname)s - %(message)s",
            "suppress_modules": [
                "services.fal_image_service",
                "services.fallback_image_service",
                "agents.generation.concurrency_manager",
                "agents.generation.image_prompt_builder",
                "agents.generation.slide_image_scheduler",
            ],
            # Credit resets and spend stay visible
            "info_modules": [
                "agents.generation.credit_ledger",
            ],
        },
        "development": {
            "default_level": "INFO",
            "console_format": "%(asctime)s - %(levelname)s - %(message)s",
            "suppress_modules": [],
            "info_modules": [],
        },
        "debug": {
            "default_level": "DEBUG",
            "console_format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
            "suppress_modules": [],
            "info_modules": [],
        }
    }

    if is_debug:
        selected_config = dict(config["debug"])
    elif is_production:
        selected_config = dict(config["production"])
    else:
        selected_config = dict(config["development"])

    selected_config["environment"] = "debug" if is_debug else ("production" if is_production else "development")

    # An explicit LOG_LEVEL wins over the profile default
    if os.getenv("LOG_LEVEL"):
        selected_config["default_level"] = LogConfig().level.upper()
    return selected_config


def apply_logging_config(config: Dict[str, Any] = None) -> Dict[str, Any]:
    """Apply logging configuration to Python's logging system"""
    if config is None:
        config = get_logging_config()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config["default_level"], logging.INFO))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(config["console_format"]))
    root_logger.handlers = []
    root_logger.addHandler(console_handler)

    for module in config.get("suppress_modules", []):
        logging.getLogger(module).setLevel(logging.WARNING)
    for module in config.get("info_modules", []):
        logging.getLogger(module).setLevel(logging.INFO)

    return config
