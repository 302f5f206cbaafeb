import logging
import re
from typing import Iterable, Union


_URL_CREDENTIALS = re.compile(r"(https?://)[^@/\s]+@", re.IGNORECASE)
_formatter = logging.Formatter()


def redact(msg: str) -> str:
    """Mask credentials that tend to leak through git command lines and headers."""
    msg = _URL_CREDENTIALS.sub(r"\1***@", msg)
    msg = re.sub(
        r"(Authorization:?|x-line-signature:?)\s+\S+", r"\1 ***", msg, flags=re.IGNORECASE
    )
    msg = re.sub(
        r"(token|secret|password|key)=\S+", r"\1=***", msg, flags=re.IGNORECASE
    )
    return msg


class RedactingFilter(logging.Filter):
    """Redact common secret-bearing fields from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            record.msg = redact(str(record.getMessage()))
            record.args = None
            # git errors carry the authenticated remote URL into tracebacks
            if record.exc_info and not record.exc_text:
                record.exc_text = redact(_formatter.formatException(record.exc_info))
        except Exception:
            pass
        return True


def setup_logging(
    level: Union[int, str] = logging.INFO,
    loggers: Iterable[str] = ("uvicorn", "uvicorn.access", "vaultline_api"),
) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s"
    )
    f = RedactingFilter()
    for handler in logging.getLogger().handlers:
        if not any(isinstance(x, RedactingFilter) for x in handler.filters):
            handler.addFilter(f)
    for name in loggers:
        lg = logging.getLogger(name)
        lg.setLevel(level)
        if not any(isinstance(x, RedactingFilter) for x in lg.filters):
            lg.addFilter(f)
