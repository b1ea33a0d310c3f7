"""
Logging channels for the threepc package.

All loggers of the package hang below the "threepc" logger; setup()
attaches the handlers once per process.
"""

import logging

FORMAT = '%(asctime)s - %(processName)s - %(name)s - %(levelname)s - %(message)s'


def setup(stream_level=logging.INFO, file_level=logging.DEBUG, log_file=None):
    logger = logging.getLogger("threepc")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # re-running setup (e.g. in a spawned child) replaces old handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(stream_level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(file_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
