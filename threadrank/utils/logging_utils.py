import logging
import logging.config
from pathlib import Path
from typing import Optional

import yaml

from ..config.settings import get_settings


def setup_logging(
    config_path: Optional[Path] = None,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Set up logging configuration from a YAML file.

    Args:
        config_path (Path): Path to the logging configuration YAML file.
            Defaults to ``Settings.LOGGING_CONFIG_PATH``.
        log_level (str): Overrides the level of the ``threadrank`` logger.
        log_format (str): ``console`` or ``json``; ``json`` switches every
            handler to the JSON formatter.
    """
    settings = get_settings()
    config_path = Path(config_path or settings.LOGGING_CONFIG_PATH)
    level = (log_level or settings.LOG_LEVEL).upper()
    fmt = log_format or settings.LOG_FORMAT

    if config_path.exists():
        try:
            with open(config_path, 'rt') as f:
                log_config = yaml.safe_load(f.read())
            if fmt == "json":
                for handler in log_config.get("handlers", {}).values():
                    handler["formatter"] = "json"
            log_config.setdefault("loggers", {}).setdefault("threadrank", {})["level"] = level
            logging.config.dictConfig(log_config)
            logging.getLogger(__name__).debug(f"Logging configured successfully from {config_path}")
        except Exception as e:
            logging.basicConfig(level=level)  # Basic config as fallback
            logging.error(f"Error loading logging configuration from {config_path}: {e}. Using basicConfig.")
    else:
        logging.basicConfig(level=level)  # Basic config if no file found
        logging.warning(f"Logging configuration file not found at {config_path}. Using basicConfig.")
