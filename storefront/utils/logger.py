import logging

LOGGER_NAME = "storefront"


def setup_logger(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return package_logger


logger = logging.getLogger(LOGGER_NAME)
