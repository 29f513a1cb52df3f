"""Singleton logging configuration.

setup_logging() configures the root logger once per process; later
calls are no-ops, so library code and tests can both call it safely.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Third-party loggers to suppress to WARNING
_SUPPRESSED_LOGGERS = (
    "asyncio",
    "tenacity",
)

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Idempotent -- second call is a no-op."""
    global _configured  # noqa: PLW0603
    if _configured:
        return
    _configured = True

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )

    for name in _SUPPRESSED_LOGGERS:
        lg = logging.getLogger(name)
        lg.setLevel(logging.WARNING)
