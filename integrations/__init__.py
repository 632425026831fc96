"""GameMarks - Game Integrations Package.

This package contains the integration lifecycle base classes, the
integration registry and one module per supported game.
"""

from integrations.base import (
    BaseIntegration,
    IntegrationError,
    IntegrationStartError,
    PollingIntegration,
)
from integrations.registry import IntegrationRegistry

__all__ = [
    "BaseIntegration",
    "PollingIntegration",
    "IntegrationError",
    "IntegrationStartError",
    "IntegrationRegistry",
]
