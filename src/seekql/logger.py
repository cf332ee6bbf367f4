import logging
import re
from typing import Any, Optional, Sequence

from seekql.settings import settings as api_settings

ROOT_LOGGER_NAME = "seekql"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

# Inlined vector literals such as '[0.1,0.2,...]'
_VECTOR_LITERAL_RE = re.compile(r"'\[([-+0-9.eE]+,){8,}[-+0-9.eE]+\]'")

_configured = False


def setup_global_logging(level: str = "INFO") -> None:
    """Configure the ``seekql`` logger namespace once.

    Only the library's own namespace is touched; the application's root
    logger configuration is left alone.

    Args:
        level: Log level name (e.g., "DEBUG", "INFO")
    """
    global _configured
    if _configured:
        return
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(_LEVELS.get(level.upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        logger.addHandler(handler)
    _configured = True


def get_logger(name: Optional[str] = None) -> "Logger":
    """Return a logger inside the ``seekql`` namespace.

    Args:
        name: Logger name, usually __name__ or a class name
    """
    return Logger(name)


def shorten_sql(sql: str) -> str:
    """Collapse long inlined vector literals so statements stay readable in logs."""
    return _VECTOR_LITERAL_RE.sub("'[...]'", " ".join(sql.split()))


class Logger:
    """Thin wrapper over standard logging with convenience methods.

    - Names are placed under the ``seekql`` namespace.
    - `.message(text)` logs at `INFO` when LOG_LEVEL is INFO, at `DEBUG`
      when LOG_LEVEL is DEBUG, otherwise at the configured level.
    - `.statement(kind, sql, args)` logs compiled SQL at `DEBUG` when
      LOG_STATEMENTS is enabled.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        if not _configured:
            setup_global_logging(api_settings.LOG_LEVEL)
        name = name or ROOT_LOGGER_NAME
        if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        self._logger.error(msg, *args, **kwargs)

    def message(self, msg: str, *args, **kwargs) -> None:
        level = (api_settings.LOG_LEVEL or "").upper()
        if level == "DEBUG":
            self.debug(msg, *args, **kwargs)
        elif level == "INFO" or level == "":
            self.info(msg, *args, **kwargs)
        else:
            self._logger.log(_LEVELS.get(level, logging.INFO), msg, *args, **kwargs)

    def statement(self, kind: str, sql: str, args: Sequence[Any] = ()) -> None:
        if not api_settings.LOG_STATEMENTS:
            return
        self.debug("%s: %s args=%r", kind, shorten_sql(sql), list(args))
