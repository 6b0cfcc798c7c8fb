"""
Pitwall Race Simulator Backend - FastAPI Application
"""
# pitwall/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from pitwall.config import get_settings
from pitwall.core.logging import setup_logging, get_logger
from pitwall.services.llm_client import get_llm_client
from pitwall.services.session_registry import SessionRegistry

import pitwall.routers.health as health
import pitwall.routers.control as control
import pitwall.routers.chat as chat
import pitwall.routers.realtime as realtime


# Setup logging
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    current = get_settings()
    logger.info("=" * 60)
    logger.info(f"Starting {current.app_name} v{current.app_version}")
    logger.info(f"LLM Provider: {current.llm_provider}")
    logger.info(f"LLM Model: {current.llm_model_name}")
    logger.info("=" * 60)

    registry = SessionRegistry(current, get_llm_client(current))
    registry.create(current.default_session_id)
    app.state.registry = registry

    yield

    # Shutdown
    logger.info("Shutting down application")
    await registry.close_all()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Pitwall Race Simulator API

    Features:
    - Tick-driven race simulation broadcast over WebSocket (20 Hz)
    - Live leaderboard with gap, interval and overtakes
    - AI race engineer answering driver questions from live telemetry,
      with rule-based answers when the LLM is unavailable
    """,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(control.router)
app.include_router(chat.router)
app.include_router(realtime.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "pitwall.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
