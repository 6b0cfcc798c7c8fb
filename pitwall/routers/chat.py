# pitwall/routers/chat.py
"""Race engineer Q&A and snapshot query endpoints."""
from fastapi import APIRouter, Depends, Query

from pitwall.config import Settings
from pitwall.core.deps import get_app_settings, get_llm, get_race_session
from pitwall.core.logging import get_logger
from pitwall.schemas.chat import AskRequest, AskResponse
from pitwall.schemas.race import RaceSnapshot
from pitwall.services.engineer_service import answer_question
from pitwall.services.llm_client import LLMClient
from pitwall.services.race_session import RaceSession

logger = get_logger(__name__)
router = APIRouter(tags=["Engineer"])


@router.get("/latest", response_model=RaceSnapshot | None, response_model_by_alias=True)
async def latest_snapshot(session: RaceSession = Depends(get_race_session)) -> RaceSnapshot | None:
    """Most recent tick snapshot, or null before the first tick."""
    return session.latest_snapshot


@router.get("/ask", response_model=AskResponse, response_model_by_alias=True)
async def ask_engineer(
    q: str = Query("", max_length=1000, description="Driver question"),
    session: RaceSession = Depends(get_race_session),
    llm_client: LLMClient = Depends(get_llm),
    settings: Settings = Depends(get_app_settings)
) -> AskResponse:
    """
    Ask the race engineer a question about the current race.

    Example questions:
    - "Battery ok?"
    - "Brakes ok?"
    - "Gap to the leader?"
    """
    logger.info(f"Driver question: {q[:100]}")
    return await answer_question(
        q,
        session.latest_snapshot,
        llm_client,
        timeout=settings.llm_timeout
    )


@router.post("/ask", response_model=AskResponse, response_model_by_alias=True)
async def ask_engineer_post(
    request: AskRequest,
    session: RaceSession = Depends(get_race_session),
    llm_client: LLMClient = Depends(get_llm),
    settings: Settings = Depends(get_app_settings)
) -> AskResponse:
    """Same as GET /ask with the question in the body (e.g. from speech-to-text)."""
    return await answer_question(
        request.q,
        session.latest_snapshot,
        llm_client,
        timeout=settings.llm_timeout
    )
