import logging
from typing import Union

from pythonjsonlogger import jsonlogger

_handler = None


def setup_logger(level: Union[int, str] = logging.INFO) -> None:
    """JSON log lines on stderr for the root logger.

    Safe to call more than once, the handler is only installed the first time.
    """
    global _handler
    logger = logging.getLogger()
    logger.setLevel(level)
    if _handler is not None:
        return
    _handler = logging.StreamHandler()
    _handler.setFormatter(jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}))
    logger.addHandler(_handler)
