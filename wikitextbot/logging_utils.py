import logging

logger = logging.getLogger("wikitextbot")
logger.addHandler(logging.NullHandler())


def setup_console_logging(verbose: bool = False) -> None:
    """Sends package log records to stderr, used by the command line."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
