import logging, os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

def setup_logging():
    # Configure root once
    logging.basicConfig(level=getattr(logging, _DEFAULT_LEVEL, logging.INFO), format=LOG_FORMAT)

    logger = logging.getLogger("SOAT")
    logger.setLevel(getattr(logging, _DEFAULT_LEVEL, logging.INFO))
    return logger

def get_logger(name: str | None = None) -> logging.Logger:
    base = logging.getLogger("SOAT")
    if not name:
        return base
    # accept both "sweeper" and "SOAT.services.sweeper"
    if name == "SOAT" or name.startswith("SOAT."):
        return logging.getLogger(name)
    return base.getChild(name)

logger = setup_logging()
