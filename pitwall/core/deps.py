# pitwall/core/deps.py
"""FastAPI dependencies."""
from fastapi import Depends, Query
from starlette.requests import HTTPConnection

from pitwall.config import Settings, get_settings
from pitwall.core.exceptions import SessionNotFoundException, session_not_found
from pitwall.services.llm_client import LLMClient, get_llm_client
from pitwall.services.race_session import RaceSession
from pitwall.services.session_registry import SessionRegistry


def get_app_settings() -> Settings:
    """Get application settings dependency."""
    return get_settings()


def get_llm() -> LLMClient:
    """Get LLM client dependency."""
    return get_llm_client(get_settings())


def get_registry(connection: HTTPConnection) -> SessionRegistry:
    """Session registry created at startup."""
    return connection.app.state.registry


def get_race_session(
    session_id: str | None = Query(None, description="Race session id (defaults to the global race)"),
    registry: SessionRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings)
) -> RaceSession:
    """Resolve the race session addressed by the request."""
    session_id = session_id or settings.default_session_id
    try:
        return registry.get(session_id)
    except SessionNotFoundException:
        raise session_not_found(session_id)
