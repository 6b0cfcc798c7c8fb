# pitwall/schemas/race.py
"""Race configuration, session descriptor and tick snapshot schemas.

Every message sent to viewers is serialized with camelCase keys
(``model_dump(by_alias=True)``); Python code uses the snake_case names.
"""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Immutable schema serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# === Configuration ===

class RaceConfig(WireModel):
    """Race parameters, fixed for the lifetime of a session."""
    race_id: str = "SIM-TX25"
    laps: int = Field(5, ge=1)
    lap_length_meters: float = Field(3500.0, gt=0)
    tick_hz: float = Field(20.0, gt=0)
    pit_penalty_s: float = Field(22.0, ge=0)
    pit_speed_kph: float = Field(80.0, gt=0)
    nominal_speed_kph: float = Field(280.0, gt=0)

    @property
    def tick_period_s(self) -> float:
        return 1.0 / self.tick_hz

    @property
    def nominal_speed_mps(self) -> float:
        return self.nominal_speed_kph / 3.6


class DriverProfile(WireModel):
    """Driver identity and pace characteristics."""
    name: str = Field(..., min_length=1)
    team: str
    start_position: int = Field(..., ge=1)
    base_pace: float = Field(..., gt=0)  # seconds per lap
    pace_jitter: float = Field(..., ge=0)
    consistency: float = Field(..., ge=0, le=1)
    pit_lap: int = Field(..., ge=1)


class Band(WireModel):
    """Min/max band for a telemetry channel."""
    min: float
    max: float


class TelemetryModel(WireModel):
    """Parameters of the player car's synthetic telemetry."""
    fuel_start_l: float = Field(20.0, ge=0)
    fuel_consumption_rate_l_per_lap: float = Field(2.35, ge=0)
    brake_temp_c: Band = Band(min=450, max=950)
    tire_temp_c: Band = Band(min=85, max=110)
    throttle_pct: Band = Band(min=0, max=100)
    brake_pct: Band = Band(min=0, max=100)


class PlayerInfo(WireModel):
    """The player-controlled driver."""
    name: str
    team: str
    telemetry_model: TelemetryModel = TelemetryModel()


class WeatherInfo(WireModel):
    """Track conditions shown to viewers."""
    condition: str = "Dry"
    air_temp_c: float = 27.0
    track_temp_c: float = 39.0
    humidity_pct: float = 48
    wind_kph: float = 9.5
    wind_dir_deg: float = 210
    rain: bool = False


class RaceInfo(WireModel):
    """Race block of the session descriptor."""
    race_id: str
    laps: int
    lap_length_meters: float
    tick_hz: float


class SessionMessage(WireModel):
    """Session descriptor sent on attach and after every reset."""
    type: Literal["session"] = "session"
    race: RaceInfo
    weather: WeatherInfo
    drivers: list[DriverProfile]
    player: PlayerInfo


# === Tick ===

class LeaderboardEntry(WireModel):
    """One row of the leaderboard."""
    rank: int
    name: str
    team: str
    lap: int
    total_time: float
    last_lap_time: float
    gap: float
    interval: float
    track_meters: int
    meters_behind_leader: float
    in_pit: bool = False


class OvertakeEvent(WireModel):
    """A position change at one rank between two consecutive ticks."""
    rank: int
    driver: str
    previous_driver: str


class PlayerTelemetry(WireModel):
    """Instantaneous telemetry of the player car."""
    name: str
    team: str
    speed_kph: float
    throttle_pct: float
    brake_pct: float
    brake_temp_c: float
    tire_temp_c: float
    fuel_remaining_l: float
    current_lap: int
    pit_lap: int
    in_pit: bool
    track_meters: int


class RaceSnapshot(WireModel):
    """Complete state produced by one tick."""
    type: Literal["tick"] = "tick"
    race_time: float
    leaderboard: list[LeaderboardEntry]
    player_telemetry: PlayerTelemetry
    overtakes: list[OvertakeEvent] = []
    finished: bool = False
