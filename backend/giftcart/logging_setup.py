import logging
import sys

from giftcart.config import settings


def configure_logging(level: str = None) -> logging.Logger:
    """Attach a single stdout handler to the ``giftcart`` logger tree."""
    log = logging.getLogger("giftcart")
    log.setLevel((level or settings.LOG_LEVEL).upper())
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter("[%(name)s] %(levelname)s %(message)s"))
        log.addHandler(h)
    return log
