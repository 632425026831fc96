"""GameMarks - Main Application Entry Point.

Local backend that watches supported games while a recording is active
and marks kills, deaths and assists on the recording's timeline.

Usage:
    uvicorn main:app --host 127.0.0.1 --port 8000

Example:
    $ curl http://localhost:8000/api/v1/integrations/
    $ curl -X POST http://localhost:8000/api/v1/recording/start
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.endpoints.integrations import router as integrations_router
from api.endpoints.recording import router as recording_router
from app.lifespan import lifespan

# Application metadata
APP_TITLE = "GameMarks"
APP_DESCRIPTION = """
## Automatic bookmarks for game recordings

GameMarks attaches to a game's live telemetry and turns kills, deaths
and assists into timestamped bookmarks on the active recording.

### Supported games

- **Counter-Strike 2**: Game State Integration push listener
- **League of Legends**: Live Client Data API polling
- **PUBG: BATTLEGROUNDS**: replay directory watching

### Getting Started

1. Start the server: `uvicorn main:app`
2. Open API docs: http://localhost:8000/docs
3. Start a recording: `POST /api/v1/recording/start`
4. Read its bookmarks: `GET /api/v1/recording/`
"""
APP_VERSION = "1.0.0"

# Create FastAPI application with lifespan management
app = FastAPI(
    title=APP_TITLE,
    description=APP_DESCRIPTION,
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# The UI is served from another local origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(integrations_router)
app.include_router(recording_router)


@app.get(
    "/",
    response_class=JSONResponse,
    tags=["Root"],
    summary="API Root",
    description="Returns API information and endpoint links.",
)
async def root() -> dict:
    return {
        "name": APP_TITLE,
        "version": APP_VERSION,
        "docs": "/docs",
        "endpoints": {
            "integrations": "/api/v1/integrations/",
            "running": "/api/v1/integrations/running",
            "recording": "/api/v1/recording/",
        },
    }


@app.get(
    "/health",
    response_class=JSONResponse,
    tags=["Health"],
    summary="Health Check",
    description="Returns service health status.",
)
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Dict with health status.
    """
    return {"status": "healthy", "service": APP_TITLE, "version": APP_VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )
