import logging
import sys

from loguru import logger

# Loggers of the transport libraries; their records are routed through loguru.
TRANSPORT_LOGGERS = ('httpx', 'httpcore', 'socketio', 'engineio')


class _InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str, *, transport_level: str = 'WARNING') -> None:
    logger.remove()
    logger.add(
        sys.stdout,
        level=level,
        backtrace=True,
        diagnose=False,
    )
    logging.root.handlers = [_InterceptHandler()]
    logging.root.setLevel(level)
    for name in TRANSPORT_LOGGERS:
        transport_logger = logging.getLogger(name)
        transport_logger.handlers = []
        transport_logger.propagate = True
        transport_logger.setLevel(transport_level)
