# pitwall/services/race_setup.py
"""
Race setup: default field and building validated race parameters.
"""
from pydantic import ValidationError

from pitwall.config import Settings
from pitwall.core.exceptions import ConfigurationError
from pitwall.core.logging import get_logger
from pitwall.schemas.race import (
    DriverProfile,
    PlayerInfo,
    RaceConfig,
    RaceInfo,
    SessionMessage,
    TelemetryModel,
    WeatherInfo,
)

logger = get_logger(__name__)

# (name, team, base pace, pace jitter, consistency)
DEFAULT_GRID: list[tuple[str, str, float, float, float]] = [
    ("Carlos Sainz", "Williams Racing", 85.30, 0.22, 0.99),
    ("Max Verstappen", "Red Bull Racing", 84.90, 0.25, 0.99),
    ("Lewis Hamilton", "Ferrari", 85.10, 0.27, 0.98),
    ("Lando Norris", "McLaren", 85.40, 0.28, 0.98),
    ("Charles Leclerc", "Ferrari", 85.25, 0.29, 0.98),
    ("George Russell", "Mercedes", 85.50, 0.30, 0.98),
    ("Fernando Alonso", "Aston Martin", 85.70, 0.32, 0.98),
    ("Oscar Piastri", "McLaren", 85.85, 0.31, 0.98),
    ("Yuki Tsunoda", "Red Bull Racing", 85.60, 0.33, 0.97),
    ("Pierre Gasly", "Alpine", 86.00, 0.35, 0.97),
]

DEFAULT_PIT_LAP = 3


def default_driver_profiles(pit_lap: int = DEFAULT_PIT_LAP) -> list[DriverProfile]:
    """Grid in starting order, everyone on the same pit lap."""
    return [
        DriverProfile(
            name=name,
            team=team,
            start_position=position,
            base_pace=base_pace,
            pace_jitter=jitter,
            consistency=consistency,
            pit_lap=pit_lap,
        )
        for position, (name, team, base_pace, jitter, consistency) in enumerate(DEFAULT_GRID, start=1)
    ]


def build_race_config(settings: Settings) -> RaceConfig:
    """
    Build the race configuration from settings.

    Raises:
        ConfigurationError: If any value is out of range (zero lap length,
            zero tick rate, ...)
    """
    try:
        return RaceConfig(
            race_id=settings.race_id,
            laps=settings.race_laps,
            lap_length_meters=settings.lap_length_m,
            tick_hz=settings.tick_hz,
            pit_penalty_s=settings.pit_penalty_s,
            pit_speed_kph=settings.pit_speed_kph,
            nominal_speed_kph=settings.nominal_speed_kph,
        )
    except ValidationError as e:
        logger.error(f"Rejected race configuration: {e}")
        raise ConfigurationError(str(e)) from e


def build_player(settings: Settings, profiles: list[DriverProfile]) -> PlayerInfo:
    """Player block for the configured player driver."""
    profile = next((p for p in profiles if p.name == settings.player_name), None)
    if profile is None:
        raise ConfigurationError(f"Player {settings.player_name!r} is not on the grid")

    try:
        telemetry_model = TelemetryModel(
            fuel_start_l=settings.fuel_start_l,
            fuel_consumption_rate_l_per_lap=settings.fuel_rate_l_per_lap,
        )
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e

    return PlayerInfo(name=profile.name, team=profile.team, telemetry_model=telemetry_model)


def build_session_message(
    config: RaceConfig,
    profiles: list[DriverProfile],
    player: PlayerInfo,
    weather: WeatherInfo | None = None,
) -> SessionMessage:
    """Session descriptor sent to viewers on attach and reset."""
    return SessionMessage(
        race=RaceInfo(
            race_id=config.race_id,
            laps=config.laps,
            lap_length_meters=config.lap_length_meters,
            tick_hz=config.tick_hz,
        ),
        weather=weather or WeatherInfo(),
        drivers=profiles,
        player=player,
    )
