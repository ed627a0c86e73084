import logging
import sys
import time

from pythonjsonlogger.json import JsonFormatter


class UTCJsonFormatter(JsonFormatter):
    converter = time.gmtime


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(UTCJsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(handler)

    # redis/httpx are chatty at DEBUG and never carry otp context
    for noisy in ("httpx", "httpcore", "redis"):
        logging.getLogger(noisy).setLevel(max(root.level, logging.WARNING))
