import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole application.

    Repeated calls only adjust the level, so the app factory and the test
    suite can both call it without stacking handlers.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)

    # SQL echo is controlled by the engine, not the log level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    root_logger.debug(f"Logging configured at {level}")
