import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path


def setup_logging(log_name: str = 'auth0_mgmt', verbose_console_logging: bool = True) -> logging.Logger:
    """Set up logging with both file and console handlers.

    Handlers are attached to the root logger so the module loggers of
    the client, token cache and rate limiter all end up in the same file.

    Args:
        log_name: Name for the returned logger (also used as log filename)
        verbose_console_logging: If True, console shows INFO level; if False, shows WARNING level

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(log_name)
    root = logging.getLogger()

    # Guard against adding duplicate handlers on repeated calls
    if any(getattr(h, '_auth0_mgmt', False) for h in root.handlers):
        return logger

    root.setLevel(logging.INFO)

    log_dir = Path(__file__).parent / 'logs'
    log_dir.mkdir(exist_ok=True)

    # File handler (rotating)
    file_formatter = logging.Formatter('%(asctime)s|%(name)s|%(levelname)s|%(funcName)s|%(lineno)d|%(message)s')
    file_handler = RotatingFileHandler(
        log_dir / f'{log_name}.log',
        maxBytes=1024 * 1024,  # 1 MB
        backupCount=5,
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(file_formatter)

    # Console handler
    console_formatter = logging.Formatter('%(funcName)s|%(lineno)d|%(message)s')
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO if verbose_console_logging else logging.WARNING)
    console_handler.setFormatter(console_formatter)

    for handler in (file_handler, console_handler):
        handler._auth0_mgmt = True
        root.addHandler(handler)

    # aiohttp is chatty at INFO about connection pooling
    logging.getLogger('aiohttp').setLevel(logging.WARNING)

    return logger
