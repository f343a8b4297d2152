# slothunter/utils/colors.py
"""Plain line logging (CLI, configuration, notification) on top of loguru."""
import sys

from loguru import logger

from slothunter.config import LOG_LEVEL

_ANSI = {
    "blue": "\033[94m",
    "yellow": "\033[93m",
    "red": "\033[91m",
    "green": "\033[92m",
    "cyan": "\033[96m",
    "magenta": "\033[95m",
    "white": "\033[97m",
    "gray": "\033[90m",
}
_RESET = "\033[0m"


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Replace loguru's default sink with a compact stderr sink at *level*."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


class ColoredLogger:
    """Static loguru front-end; the message body is tinted with an ANSI color."""

    @staticmethod
    def _emit(level: str, message: str, color: str) -> None:
        code = _ANSI.get(color)
        text = f"{code}{message}{_RESET}" if code else message
        # depth=2 reports the caller of debug()/info()/..., not this helper
        logger.opt(depth=2).log(level, text)

    @staticmethod
    def debug(message: str, color: str = "gray") -> None:
        ColoredLogger._emit("DEBUG", message, color)

    @staticmethod
    def info(message: str, color: str = "blue") -> None:
        ColoredLogger._emit("INFO", message, color)

    @staticmethod
    def warning(message: str, color: str = "yellow") -> None:
        ColoredLogger._emit("WARNING", message, color)

    @staticmethod
    def error(message: str, color: str = "red") -> None:
        ColoredLogger._emit("ERROR", message, color)

    @staticmethod
    def success(message: str, color: str = "green") -> None:
        ColoredLogger._emit("SUCCESS", message, color)
