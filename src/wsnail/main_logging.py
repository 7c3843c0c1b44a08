"""Logging setup for the wsnail client.

Connection errors and retry exhaustion are logged at ERROR by the
controller and always reach stderr. --verbose adds the controller's
connect/retry trace at DEBUG, while the websockets library is held at
INFO so its per-frame debug output does not drown the client's own.
"""
import logging

# websockets logs every frame at DEBUG
WEBSOCKETS_LOGGER = "websockets"


def configure_logging(verbose: bool) -> None:
    """
    Route client logs to stderr.

    Args:
        verbose: DEBUG for wsnail loggers and INFO for websockets if True;
            WARNING for everything otherwise.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler()],
    )
    logging.getLogger(WEBSOCKETS_LOGGER).setLevel(
        logging.INFO if verbose else logging.WARNING
    )
