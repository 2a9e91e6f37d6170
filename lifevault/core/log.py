import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger("lifevault")
    logger.setLevel(level.upper())
    # create_app may run more than once per process (tests); keep a single handler
    if not any(getattr(h, "_lifevault", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._lifevault = True
        logger.addHandler(handler)
    return logger
