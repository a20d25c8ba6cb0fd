from .config import Config, ConfigError
from .logger import LoggingOptions, get_logger, setup_logger

__all__ = ["Config", "ConfigError", "LoggingOptions", "get_logger", "setup_logger"]
