"""GameMarks - Endpoints Package.

This package contains all API endpoint routers.
"""

from api.endpoints.integrations import router as integrations_router
from api.endpoints.recording import router as recording_router

__all__ = [
    "integrations_router",
    "recording_router",
]
