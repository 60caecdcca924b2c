"""
Structured Logging

Every ledger mutation and lifecycle transition is logged as a structured
event. Logging is local only: the ledger keeps no audit trail.

Failures inside logging never reach the caller.
"""

import logging
import sys

import structlog

from cardledger.config import get_settings


_configured = False


def configure_logging(json_output: bool = True, debug: bool = False) -> None:
    """Configure structlog on top of the stdlib logging module."""
    global _configured

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger, configuring structlog from settings on first use."""
    if not _configured:
        try:
            app = get_settings().app
            configure_logging(json_output=app.log_json, debug=app.debug_mode)
        except Exception:
            # Bad LEDGER_* environment must not stop the ledger from logging
            configure_logging()
    return structlog.get_logger(name)
