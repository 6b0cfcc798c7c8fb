"""Tests for the race engineer service."""

import asyncio

import pytest

from pitwall.core.exceptions import LLMException
from pitwall.schemas.chat import AnswerSource
from pitwall.services.engineer_service import (
    COMMENTARY_FALLBACK,
    NO_TELEMETRY_ANSWER,
    answer_question,
    build_system_prompt,
    fallback_answer,
    normalize_question,
    race_start_commentary,
)
from pitwall.services.race_setup import default_driver_profiles


class FailingLLM:
    async def ask(self, system_prompt, user_prompt):
        raise LLMException("Gemini quota exceeded")


class SlowLLM:
    async def ask(self, system_prompt, user_prompt):
        await asyncio.sleep(10)
        return "too late"


class ScriptedLLM:
    def __init__(self, answer="Copy, box this lap."):
        self.answer = answer
        self.prompts = []

    async def ask(self, system_prompt, user_prompt):
        self.prompts.append((system_prompt, user_prompt))
        return self.answer


class TestFallbackAnswer:
    """Test the deterministic fallback rules."""

    @pytest.mark.parametrize(
        "fuel, expected",
        [
            (8.0, "Fuel critical, box this lap!"),
            (15.0, "Fuel low, manage mode."),
            (25.0, "Fuel is good."),
        ],
    )
    def test_fuel_tiers(self, make_snapshot, fuel, expected):
        assert fallback_answer("Fuel ok?", make_snapshot(fuel=fuel)) == expected
        assert fallback_answer("Battery okay?", make_snapshot(fuel=fuel)) == expected

    @pytest.mark.parametrize(
        "brake_temp, expected",
        [
            (650.0, "Brakes critical! Manage cooling."),
            (560.0, "Brakes running hot."),
            (480.0, "Brakes are good."),
        ],
    )
    def test_brake_tiers(self, make_snapshot, brake_temp, expected):
        assert fallback_answer("Brakes ok?", make_snapshot(brake_temp=brake_temp)) == expected

    @pytest.mark.parametrize(
        "tire_temp, expected",
        [
            (125.0, "Tyres overheating! Manage pace."),
            (115.0, "Tyres running warm."),
            (100.0, "Tyres are in the window."),
        ],
    )
    def test_tire_tiers(self, make_snapshot, tire_temp, expected):
        assert fallback_answer("How are the tyres?", make_snapshot(tire_temp=tire_temp)) == expected
        assert fallback_answer("tires ok", make_snapshot(tire_temp=tire_temp)) == expected

    def test_boundaries_are_exclusive(self, make_snapshot):
        assert fallback_answer("fuel", make_snapshot(fuel=10.0)) == "Fuel low, manage mode."
        assert fallback_answer("fuel", make_snapshot(fuel=20.0)) == "Fuel is good."
        assert fallback_answer("brakes", make_snapshot(brake_temp=600.0)) == "Brakes running hot."
        assert fallback_answer("tyres", make_snapshot(tire_temp=110.0)) == "Tyres are in the window."

    def test_position_question(self, make_snapshot):
        assert fallback_answer("What's the gap?", make_snapshot(player_rank=2)) == (
            "P2, 1.2 to the leader, 1.2 to the car ahead."
        )
        assert fallback_answer("Position?", make_snapshot(player_rank=1)) == "You're leading. Keep it up."

    def test_unclear_question(self, make_snapshot):
        assert fallback_answer("", make_snapshot()) == "Say again?"
        assert fallback_answer("?!", make_snapshot()) == "Say again?"
        assert fallback_answer("What's for dinner", make_snapshot()) == "Say again?"

    def test_keywords_match_whole_words(self, make_snapshot):
        snapshot = make_snapshot(tire_temp=125.0, player_rank=2)

        assert fallback_answer("Should I retire", snapshot) == "Say again?"
        assert fallback_answer("Any news on his whereabouts", snapshot) == "Say again?"
        assert fallback_answer("Brake balance ok", snapshot) == "Brakes are good."
        assert fallback_answer("Where am I", snapshot).startswith("P2")

    def test_normalize_question(self):
        assert normalize_question("  Brakes OK?! ") == "brakes ok"


class TestAnswerQuestion:
    """Test LLM answers and fallback on failure."""

    def test_no_snapshot_yet(self):
        response = asyncio.run(answer_question("Fuel ok?", None, ScriptedLLM()))

        assert response.answer == NO_TELEMETRY_ANSWER
        assert response.source == AnswerSource.NO_TELEMETRY
        assert response.race_time == 0.0

    @pytest.mark.parametrize(
        "fuel, expected",
        [
            (8.0, "Fuel critical, box this lap!"),
            (15.0, "Fuel low, manage mode."),
            (25.0, "Fuel is good."),
        ],
    )
    def test_failed_llm_falls_back(self, make_snapshot, fuel, expected):
        response = asyncio.run(answer_question("Fuel ok?", make_snapshot(fuel=fuel), FailingLLM()))

        assert response.answer == expected
        assert response.source == AnswerSource.FALLBACK

    def test_timed_out_llm_falls_back(self, make_snapshot):
        response = asyncio.run(
            answer_question("Fuel ok?", make_snapshot(fuel=8.0), SlowLLM(), timeout=0.05)
        )

        assert response.answer == "Fuel critical, box this lap!"
        assert response.source == AnswerSource.FALLBACK

    def test_llm_answer_used(self, make_snapshot):
        llm = ScriptedLLM()
        snapshot = make_snapshot(fuel=12.5)

        response = asyncio.run(answer_question("Fuel ok?", snapshot, llm))

        assert response.answer == "Copy, box this lap."
        assert response.source == AnswerSource.LLM
        assert response.race_time == snapshot.race_time

        system_prompt, user_prompt = llm.prompts[0]
        assert "Carlos Sainz" in system_prompt
        assert "P2" in system_prompt
        assert "12.5 liters" in system_prompt
        assert "Max Verstappen" in system_prompt
        assert '"fuel_remaining_l": 12.5' in user_prompt
        assert "Fuel ok?" in user_prompt

    def test_response_serializes_camel_case(self, make_snapshot):
        response = asyncio.run(answer_question("Fuel ok?", make_snapshot(), FailingLLM()))

        assert set(response.model_dump(by_alias=True)) == {"question", "answer", "raceTime", "source"}


class TestSystemPrompt:
    """Test prompt construction."""

    def test_marks_player_row(self, make_snapshot):
        prompt = build_system_prompt(make_snapshot(player_rank=3))

        player_line = next(line for line in prompt.splitlines() if "<- YOU" in line)
        assert player_line.strip().startswith("P3. Carlos Sainz")


class TestCommentary:
    """Test race start commentary."""

    def test_commentary_from_llm(self):
        llm = ScriptedLLM("Lights out!")

        assert asyncio.run(race_start_commentary(default_driver_profiles(), llm)) == "Lights out!"
        assert "P1: Carlos Sainz (Williams Racing)" in llm.prompts[0][1]

    def test_commentary_fallback(self):
        commentary = asyncio.run(race_start_commentary(default_driver_profiles(), FailingLLM()))

        assert commentary == COMMENTARY_FALLBACK
