# pitwall/routers/control.py
"""Race control endpoints: start, stop, reset."""
from fastapi import APIRouter, Depends

from pitwall.core.deps import get_race_session
from pitwall.schemas.common import ControlResponse
from pitwall.services.race_session import RaceSession

router = APIRouter(prefix="/control", tags=["Control"])


@router.api_route("/start", methods=["GET", "POST"], response_model=ControlResponse)
async def start_race(session: RaceSession = Depends(get_race_session)) -> ControlResponse:
    """Start (or resume) the race. Idempotent."""
    await session.start()
    return ControlResponse(message="Race started", running=session.running)


@router.api_route("/stop", methods=["GET", "POST"], response_model=ControlResponse)
async def stop_race(session: RaceSession = Depends(get_race_session)) -> ControlResponse:
    """Stop the race, keeping positions. Idempotent."""
    await session.stop()
    return ControlResponse(message="Race stopped", running=session.running)


@router.api_route("/reset", methods=["GET", "POST"], response_model=ControlResponse)
async def reset_race(session: RaceSession = Depends(get_race_session)) -> ControlResponse:
    """Stop the race and put every car back on the grid."""
    await session.reset()
    return ControlResponse(message="Race reset", running=session.running)
