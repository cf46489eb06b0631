"""
Structured Logging Setup

JSON logging for applications embedding layercache. The library modules
only log through ``logging.getLogger(__name__)``; call
``setup_json_logging`` once at application start to get JSON output from
both stdlib loggers and structlog loggers.
"""

import logging
import os
import sys
from typing import Optional

import structlog
from pythonjsonlogger import jsonlogger

# ============================================================================
# STRUCTURED LOGGING CONFIGURATION
# ============================================================================

def setup_json_logging(
    log_level: str = "INFO",
    service_name: str = "layercache",
    environment: Optional[str] = None,
    stream=None,
):
    """
    Setup JSON structured logging

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Name of the service
        environment: Environment name (defaults to $CACHE_ENVIRONMENT or development)
        stream: Output stream (default: stdout)
    """
    stream = stream or sys.stdout
    environment = environment or os.getenv("CACHE_ENVIRONMENT", "development")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )

    json_handler = logging.StreamHandler(stream)
    json_formatter = jsonlogger.JsonFormatter(
        fmt='%(asctime)s %(levelname)s %(name)s %(message)s',
    )
    json_handler.setFormatter(json_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level))
    root_logger.handlers.clear()
    root_logger.addHandler(json_handler)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=environment,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """
    Get a structured logger instance

    Args:
        name: Logger name (typically __name__)
    """
    return structlog.get_logger(name)


# ============================================================================
# FILTERING AND UTILITIES
# ============================================================================

def set_log_level(level: str):
    """Change logging level at runtime"""
    logging.getLogger().setLevel(getattr(logging, level))
