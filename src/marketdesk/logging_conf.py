import logging, sys, os

_NOISY_LOGGERS = ("socketio", "engineio", "sqlalchemy.engine")


def setup_logging(env: str | None = None):
    """Attach a single stdout handler to the `marketdesk` logger tree."""
    logger = logging.getLogger("marketdesk")
    if logger.handlers:
        return logger
    env = env or os.getenv("ENV", "dev")
    level = logging.DEBUG if env == "dev" else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logger
