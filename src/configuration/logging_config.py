import logging
import sys
import structlog

SENSITIVE_FIELDS = ['password', 'NEO4J_PASSWORD', 'secret', 'token', 'auth']

def filter_sensitive_data(logger, log_method, event_dict):
    """
    A structlog processor to filter sensitive data from the event dictionary.
    """
    for field in SENSITIVE_FIELDS:
        if field in event_dict:
            event_dict[field] = '[FILTERED]'
    return event_dict

def resolve_log_level(level) -> int:
    """Accept either a logging constant or a level name such as "debug"."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved

def configure_logging(log_level=logging.INFO, stream=None, json_output=True, force_reconfigure=False):
    """Configure structlog on top of stdlib logging.

    JSON lines are the default; ``json_output=False`` switches to the
    human-readable console renderer for interactive runs.
    """
    if stream is None:
        stream = sys.stdout

    if not force_reconfigure and hasattr(structlog, '_configured'):
        return

    level = resolve_log_level(log_level)

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=level,
        force=True
    )
    logging.root.setLevel(level)
    # The bolt driver is chatty at INFO.
    logging.getLogger("neo4j").setLevel(max(level, logging.WARNING))

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    shared_processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        filter_sensitive_data,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        renderer,
    ]

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    structlog._configured = True
