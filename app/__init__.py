"""GameMarks - Application Package.

This package contains application lifecycle and logging configuration.
"""

from app.lifespan import lifespan
from app.logging_config import JsonFormatter, configure_logging

__all__ = ["lifespan", "JsonFormatter", "configure_logging"]
