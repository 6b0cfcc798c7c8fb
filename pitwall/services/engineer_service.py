"""
Race engineer service: snapshot-aware Q&A and race start commentary via LLM,
with deterministic fallbacks when the LLM is unavailable.
"""
import asyncio
import json
import re

from pitwall.core.exceptions import LLMException
from pitwall.core.logging import get_logger
from pitwall.schemas.chat import AnswerSource, AskResponse
from pitwall.schemas.race import DriverProfile, RaceSnapshot
from pitwall.services.llm_client import LLMClient

logger = get_logger(__name__)

NO_TELEMETRY_ANSWER = "No telemetry yet."
SAY_AGAIN = "Say again?"
COMMENTARY_FALLBACK = "Lights out and away we go!"

# Fallback thresholds
FUEL_CRITICAL_L = 10
FUEL_CONCERNING_L = 20
BRAKE_CRITICAL_C = 600
BRAKE_HIGH_C = 550
TIRE_CRITICAL_C = 120
TIRE_WARM_C = 110

_PUNCTUATION = re.compile(r"[.,!?;:]")
_FUEL = re.compile(r"\b(?:fuel|battery)\b")
_BRAKES = re.compile(r"\bbrakes?\b")
_TYRES = re.compile(r"\b(?:tyres?|tires?)\b")
_POSITION = re.compile(r"\b(?:gap|position|where)\b")


def build_system_prompt(snapshot: RaceSnapshot) -> str:
    """Build the race engineer system prompt around the current snapshot."""
    telemetry = snapshot.player_telemetry
    entry = next((e for e in snapshot.leaderboard if e.name == telemetry.name), None)

    leaderboard_lines = []
    for e in snapshot.leaderboard:
        marker = " <- YOU" if e.name == telemetry.name else ""
        pit = " (PIT)" if e.in_pit else ""
        leaderboard_lines.append(
            f"  P{e.rank}. {e.name} | Lap {e.lap} | Gap: {e.gap:.3f}s | Int: {e.interval:.3f}s{pit}{marker}"
        )
    leaderboard_display = "\n".join(leaderboard_lines)

    position_line = f"- Position: P{entry.rank}\n- Gap to leader: {entry.gap:.3f}s" if entry else "- Position: unknown"

    return f"""You are the Formula 1 race engineer for {telemetry.name} ({telemetry.team}).
You talk to your driver over team radio with short, professional answers.

CURRENT RACE SITUATION ({int(snapshot.race_time)}s elapsed):
{position_line}
- Current lap: {telemetry.current_lap}
- Planned pit lap: {telemetry.pit_lap}
- In pit: {"YES" if telemetry.in_pit else "NO"}

FULL LEADERBOARD:
{leaderboard_display}

LIVE TELEMETRY:
- Speed: {telemetry.speed_kph:.1f} kph
- Throttle: {telemetry.throttle_pct:.1f}%
- Brake: {telemetry.brake_pct:.1f}%
- Brake temperature: {telemetry.brake_temp_c:.1f}C (optimal 300-500C, critical >{BRAKE_CRITICAL_C}C)
- Tire temperature: {telemetry.tire_temp_c:.1f}C (optimal 90-110C, critical >{TIRE_CRITICAL_C}C)
- Fuel remaining: {telemetry.fuel_remaining_l:.1f} liters

Response guidelines:
- Keep responses under 20 words
- Use F1 radio terminology ("Box box", "Mode push", "Tyres are good")
- Fuel/battery: flag if low (<{FUEL_CRITICAL_L}L critical, <{FUEL_CONCERNING_L}L concerning)
- Brakes: >{BRAKE_CRITICAL_C}C critical, >{BRAKE_HIGH_C}C high
- Tires/tyres: >{TIRE_CRITICAL_C}C critical, >{TIRE_WARM_C}C warm
- Questions about other drivers: use the leaderboard for exact gaps and positions
- Stay in character as a professional race engineer"""


def build_context_dict(snapshot: RaceSnapshot) -> dict:
    """Structured context passed to the LLM alongside the prompt."""
    return {
        "race_time": snapshot.race_time,
        "player_telemetry": snapshot.player_telemetry.model_dump(),
        "leaderboard": [entry.model_dump() for entry in snapshot.leaderboard],
    }


def normalize_question(question: str) -> str:
    """Lowercase and strip punctuation."""
    return _PUNCTUATION.sub("", question.lower()).strip()


def fallback_answer(question: str, snapshot: RaceSnapshot) -> str:
    """
    Deterministic answer from threshold rules over the player telemetry.

    Args:
        question: Driver question (any origin, typed or transcribed)
        snapshot: Latest race snapshot

    Returns:
        Short radio-style answer
    """
    normalized = normalize_question(question)
    if not normalized:
        return SAY_AGAIN

    telemetry = snapshot.player_telemetry

    if _FUEL.search(normalized):
        if telemetry.fuel_remaining_l < FUEL_CRITICAL_L:
            return "Fuel critical, box this lap!"
        elif telemetry.fuel_remaining_l < FUEL_CONCERNING_L:
            return "Fuel low, manage mode."
        return "Fuel is good."

    if _BRAKES.search(normalized):
        if telemetry.brake_temp_c > BRAKE_CRITICAL_C:
            return "Brakes critical! Manage cooling."
        elif telemetry.brake_temp_c > BRAKE_HIGH_C:
            return "Brakes running hot."
        return "Brakes are good."

    if _TYRES.search(normalized):
        if telemetry.tire_temp_c > TIRE_CRITICAL_C:
            return "Tyres overheating! Manage pace."
        elif telemetry.tire_temp_c > TIRE_WARM_C:
            return "Tyres running warm."
        return "Tyres are in the window."

    if _POSITION.search(normalized):
        entry = next((e for e in snapshot.leaderboard if e.name == telemetry.name), None)
        if entry is None:
            return SAY_AGAIN
        if entry.rank == 1:
            return "You're leading. Keep it up."
        return f"P{entry.rank}, {entry.gap:.1f} to the leader, {entry.interval:.1f} to the car ahead."

    return SAY_AGAIN


async def answer_question(
    question: str,
    snapshot: RaceSnapshot | None,
    llm_client: LLMClient,
    timeout: float | None = None
) -> AskResponse:
    """
    Answer a driver question using the LLM with the latest snapshot as context.

    Any LLM failure (error, timeout, empty answer) resolves to the local
    fallback answer; nothing propagates to the caller.

    Args:
        question: Driver question
        snapshot: Latest snapshot, or None before the first tick
        llm_client: LLM client instance
        timeout: Upper bound in seconds for the LLM call

    Returns:
        AskResponse with the answer and where it came from
    """
    if snapshot is None:
        return AskResponse(
            question=question,
            answer=NO_TELEMETRY_ANSWER,
            race_time=0.0,
            source=AnswerSource.NO_TELEMETRY
        )

    logger.info(f"Driver question at {snapshot.race_time:.2f}s: {question[:100]}")

    context_json = json.dumps(build_context_dict(snapshot), indent=2)
    user_prompt = f"""Driver question: "{question}"

Race Data Context (JSON):
{context_json}

Answer the driver's question based on the data above."""

    try:
        answer = await asyncio.wait_for(
            llm_client.ask(build_system_prompt(snapshot), user_prompt),
            timeout=timeout
        )
        logger.info(f"Engineer (LLM): {answer}")
        source = AnswerSource.LLM
    except (LLMException, asyncio.TimeoutError) as e:
        logger.warning(f"LLM unavailable, using fallback answer: {e!r}")
        answer = fallback_answer(question, snapshot)
        source = AnswerSource.FALLBACK

    return AskResponse(
        question=question,
        answer=answer,
        race_time=snapshot.race_time,
        source=source
    )


async def race_start_commentary(
    drivers: list[DriverProfile],
    llm_client: LLMClient,
    timeout: float | None = None
) -> str:
    """Short race start commentary for the grid; falls back to a stock line."""
    grid = "\n".join(f"P{d.start_position}: {d.name} ({d.team})" for d in drivers)
    system_prompt = "You are an enthusiastic, professional F1 race commentator."
    user_prompt = f"""The race is about to start!

STARTING GRID:
{grid}

Give a brief race start commentary (2-3 sentences max) about the grid and what to watch for."""

    try:
        commentary = await asyncio.wait_for(
            llm_client.ask(system_prompt, user_prompt),
            timeout=timeout
        )
    except (LLMException, asyncio.TimeoutError) as e:
        logger.warning(f"Race start commentary unavailable: {e!r}")
        commentary = COMMENTARY_FALLBACK

    logger.info(f"Race start commentary: {commentary}")
    return commentary
