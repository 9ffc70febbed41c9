import logging

from prizepool.config import environment


def create_logger(level: int) -> logging.Logger:
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    logger = logging.getLogger("prizepool")
    logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(stream_handler)

    return logger


logger = create_logger(environment.get_log_level())
