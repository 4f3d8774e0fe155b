import colorlog

handler = colorlog.StreamHandler()
handler.setFormatter(
    colorlog.ColoredFormatter(
        "%(log_color)s%(levelname)s:%(name)s:%(message)s"
    )
)


def get_logger(name):
    """Return a logger with a colorlog handler."""
    logger = colorlog.getLogger(name)
    if handler not in logger.handlers:
        logger.addHandler(handler)
    return logger


def set_level(level: str) -> None:
    """Set the level of every epidisco_cli logger"""
    colorlog.getLogger("epidisco_cli").setLevel(level)
