import logging
import sys

def setup_logger(name=None, verbose=False):
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

    if not logger.handlers:
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(formatter)
        logger.addHandler(ch)

    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG if verbose else logging.INFO)

    return logger
