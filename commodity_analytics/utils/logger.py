"""Loguru sinks driven by the ``logging`` config section."""
import sys
from dataclasses import dataclass
from typing import Optional

from loguru import logger


# Library use stays silent until setup_logger installs sinks
logger.remove()

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


@dataclass
class LoggingOptions:
    """Sinks installed by setup_logger.

    Attributes:
        file: Log file path; None or empty disables the file sink
        level: Minimum level for both sinks
        rotation: Size or age at which the log file rotates
        retention: How long rotated files are kept
        console: Also log to stderr
        serialize: Write the file sink as JSON lines
    """
    file: Optional[str] = "logs/commodity_analytics.log"
    level: str = "INFO"
    rotation: str = "10 MB"
    retention: str = "30 days"
    console: bool = True
    serialize: bool = False


def setup_logger(options: Optional[LoggingOptions] = None) -> list[int]:
    """Replace all sinks with the ones ``options`` describe.

    Calling it again swaps the sinks, so a process can reconfigure logging
    after loading a different config.

    Args:
        options: Sink settings, defaults when None

    Returns:
        Handler ids of the installed sinks

    Raises:
        ValueError: Unknown level name
    """
    options = options or LoggingOptions()
    level = options.level.upper()

    handlers = []
    if options.console:
        handlers.append({"sink": sys.stderr, "level": level, "format": CONSOLE_FORMAT})
    if options.file:
        handlers.append({
            "sink": options.file,
            "level": level,
            "format": FILE_FORMAT,
            "rotation": options.rotation,
            "retention": options.retention,
            "serialize": options.serialize,
            "encoding": "utf-8",
        })
    return logger.configure(handlers=handlers)


def get_logger(name: str):
    """Return the shared logger bound to a module name."""
    return logger.bind(name=name)
