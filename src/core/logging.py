import sys
from loguru import logger
from .config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> | {extra}"
)


def setup_logging():
    """
    Configure the process-wide loguru logger.

    Replaces loguru's default sink with a single stderr sink. Context is passed
    as keyword arguments (logger.info("...", amount=50000)) and lands in
    {extra}, or in the JSON record when LOG_JSON=true.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=LOG_FORMAT,
        serialize=settings.log_json,
        backtrace=False,
        diagnose=False,
    )
    return logger
