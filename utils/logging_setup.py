"""
Logging Configuration

Modules log through structlog.get_logger(__name__) and pass context as
keyword arguments. structlog hands each event to the standard library
logger of the same name, so handlers, levels and pytest's caplog keep
working; the handlers installed here render every record as one JSON line.
"""

import logging
from logging.handlers import RotatingFileHandler

import structlog

# Applied to records from plain logging loggers (werkzeug, sqlalchemy)
_FOREIGN_PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt='iso'),
]


def json_formatter():
    """Formatter rendering structlog and plain logging records as JSON lines."""
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(default=str, sort_keys=True),
        ],
        foreign_pre_chain=_FOREIGN_PRE_CHAIN,
    )


def configure_logging(app):
    """
    Configure structlog and attach console (and optional rotating file)
    handlers to the root logger.

    Safe to call more than once; handlers installed by a previous call
    are replaced.
    """
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    formatter = json_formatter()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, '_meals_handler', False):
            root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    console._meals_handler = True
    root.addHandler(console)

    log_file = app.config.get('LOG_FILE')
    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(formatter)
        file_handler._meals_handler = True
        root.addHandler(file_handler)

    root.setLevel(level)
    # SQL echo stays off unless explicitly asked for
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
