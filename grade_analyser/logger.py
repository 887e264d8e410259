"""Package logging: everything under the `grade_analyser` logger, to stdout."""
import logging
import sys

LOGGER_NAME = "grade_analyser"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger = logging.getLogger(LOGGER_NAME)


def _attach_handler() -> None:
    # Streamlit re-executes app.py on every interaction; one handler only
    if any(getattr(h, "_grade_analyser", False) for h in _logger.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._grade_analyser = True
    _logger.addHandler(handler)


def set_level(level: str | int) -> None:
    """Accepts a level name ("debug", "INFO") or number; unknown names mean INFO."""
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO
    _logger.setLevel(level)


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    _attach_handler()
    set_level(level)
    return _logger


def get_logger(name: str | None = None) -> logging.Logger:
    if name:
        return _logger.getChild(name)
    return _logger


_attach_handler()
_logger.setLevel(logging.INFO)
