# bistro/utils/logging.py
import logging
import sys

from bistro.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def _configure_root():
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))

    root = logging.getLogger("bistro")
    root.setLevel(LOG_LEVEL.upper())
    root.addHandler(handler)
    #bez propagate zeby uvicorn nie duplikowal linii
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    _configure_root()
    return logging.getLogger(name)
