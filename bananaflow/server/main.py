"""
bananaflow FastAPI + Socket.IO server.

Start with:
    python -m bananaflow.server.main

Or via uvicorn directly:
    uvicorn bananaflow.server.main:socket_app --port 3001 --reload
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bananaflow import __version__
from bananaflow.server.config import load_settings
from bananaflow.server.routes.graph_routes import router as graph_router
from bananaflow.server.routes.studio_routes import router as studio_router
from bananaflow.server.trace.socket_server import create_socket_app

settings = load_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(title="bananaflow API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(graph_router, prefix="/api")
app.include_router(studio_router, prefix="/api")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Wrap with Socket.IO ASGI layer
# ---------------------------------------------------------------------------

# socket_app is the top-level ASGI app passed to uvicorn.
# Socket.IO connections are handled at the root; all other requests are
# forwarded to the inner FastAPI app.
socket_app = create_socket_app(app)

# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run() -> None:
    import uvicorn

    if not settings.api_key:
        logger.warning("GEMINI_API_KEY is not set; generation requests will fail")

    uvicorn.run(
        "bananaflow.server.main:socket_app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
