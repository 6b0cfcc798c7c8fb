"""Shared fixtures for the Pitwall tests."""

import random

import pytest

from pitwall.schemas.race import (
    DriverProfile,
    LeaderboardEntry,
    PlayerInfo,
    PlayerTelemetry,
    RaceConfig,
    RaceSnapshot,
    TelemetryModel,
)
from pitwall.services.race_setup import default_driver_profiles


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingObserver:
    """Viewer that records every message, or fails every send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: list[dict] = []

    async def send_json(self, data):
        if self.fail:
            raise ConnectionError("viewer went away")
        self.messages.append(data)

    def of_type(self, message_type: str) -> list[dict]:
        return [m for m in self.messages if m.get("type") == message_type]


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def race_config():
    return RaceConfig()


@pytest.fixture
def profiles():
    return default_driver_profiles()


@pytest.fixture
def player(profiles):
    return PlayerInfo(name=profiles[0].name, team=profiles[0].team, telemetry_model=TelemetryModel())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def observer_factory():
    return RecordingObserver


@pytest.fixture
def short_race():
    """Tiny track so laps take a couple of seconds of race time."""
    return RaceConfig(laps=6, lap_length_meters=100.0, tick_hz=20.0, pit_penalty_s=22.0)


@pytest.fixture
def solo_profile():
    return DriverProfile(
        name="Carlos Sainz",
        team="Williams Racing",
        start_position=1,
        base_pace=85.30,
        pace_jitter=0.22,
        consistency=0.99,
        pit_lap=3,
    )


@pytest.fixture
def make_snapshot():
    """Build a snapshot with chosen player telemetry values."""

    def _make(fuel=20.0, brake_temp=500.0, tire_temp=100.0, player_rank=2):
        names = ["Max Verstappen", "Carlos Sainz", "Lando Norris"]
        player_name = "Carlos Sainz"
        order = [n for n in names if n != player_name]
        order.insert(player_rank - 1, player_name)

        leaderboard = []
        for idx, name in enumerate(order):
            leaderboard.append(
                LeaderboardEntry(
                    rank=idx + 1,
                    name=name,
                    team="Team",
                    lap=2,
                    total_time=45.0,
                    last_lap_time=45.0,
                    gap=idx * 1.25,
                    interval=0.0 if idx == 0 else 1.25,
                    track_meters=4000 - idx * 97,
                    meters_behind_leader=idx * 97.2,
                )
            )

        telemetry = PlayerTelemetry(
            name=player_name,
            team="Williams Racing",
            speed_kph=280.0,
            throttle_pct=100.0,
            brake_pct=0.0,
            brake_temp_c=brake_temp,
            tire_temp_c=tire_temp,
            fuel_remaining_l=fuel,
            current_lap=2,
            pit_lap=3,
            in_pit=False,
            track_meters=4000,
        )
        return RaceSnapshot(race_time=61.5, leaderboard=leaderboard, player_telemetry=telemetry)

    return _make
