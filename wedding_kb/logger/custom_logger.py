import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# -------------------------------------------------
# Console with proper color handling
# -------------------------------------------------
console = Console(force_terminal=True, color_system="truecolor")

# kwargs that belong to logging itself and must reach the logger untouched
_LOGGING_KWARGS = {"exc_info", "stack_info", "stacklevel", "extra"}

_configured = False


def _configure_root(level: str) -> None:
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=level,
        format="%(message)s",  # Rich handles formatting
        datefmt="[%H:%M:%S.%f]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=False,
                show_time=True,
                show_level=True,
                show_path=True,
                log_time_format="%H:%M:%S.%f",
            )
        ],
    )

    # -------------------------------------------------
    # Silence noisy libraries
    # -------------------------------------------------
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.dialects").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.orm").setLevel(logging.WARNING)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("pypdf").setLevel(logging.ERROR)

    _configured = True


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger adapter that accepts key/value context next to the message:

        log.info("Chunk stored", file="ep1.pdf", chunk=3)

    renders as `Chunk stored | file=ep1.pdf | chunk=3`. %-style positional
    args keep working as with a plain logger.
    """

    def process(self, msg, kwargs):
        fields = {k: kwargs.pop(k) for k in list(kwargs) if k not in _LOGGING_KWARGS}
        fields.update(self.extra or {})
        if fields:
            rendered = " | ".join(f"{k}={v}" for k, v in fields.items())
            msg = f"{msg} | {rendered}"
        return msg, kwargs

    def bind(self, **context) -> "StructuredLogger":
        """Return a child adapter that adds `context` to every line."""
        merged = dict(self.extra or {})
        merged.update(context)
        return StructuredLogger(self.logger, merged)


class CustomLogger:
    def __init__(self, level: str | None = None):
        self.level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
        _configure_root(self.level)

    def get_logger(self, name: str = "wedding_kb") -> StructuredLogger:
        return StructuredLogger(logging.getLogger(name), {})
