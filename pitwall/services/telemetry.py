"""
Synthetic telemetry for the player car.

The channels are not derived from the pace model that moves the cars. Speed
and pedal inputs follow a sinusoidal profile over the lap to mimic straights
and braking zones; brake and tire temperatures drift as bounded random walks.
"""
import math
import random

from pitwall.models.driver import DriverState
from pitwall.schemas.race import Band, PlayerTelemetry, RaceConfig, TelemetryModel

# Speed profile over a lap (kph)
BASE_SPEED_KPH = 250.0
SPEED_SWING_KPH = 35.0
SPEED_NOISE_KPH = 15.0

# sin(8*pi*progress) below this marks a braking zone
BRAKING_THRESHOLD = -0.6

# Random walk tuning for temperatures
TEMP_PULL = 0.2  # fraction of the distance to target closed per tick
BRAKE_TEMP_STEP_C = 25.0
TIRE_TEMP_STEP_C = 0.8


def _clamp(value: float, band: Band, headroom: float = 0.0) -> float:
    return max(band.min, min(band.max + headroom, value))


class PlayerTelemetryGenerator:
    """Random-walk telemetry model for one car."""

    def __init__(
        self,
        race: RaceConfig,
        model: TelemetryModel,
        rng: random.Random | None = None,
    ):
        self.race = race
        self.model = model
        self.rng = rng or random.Random()
        self.reset()

    def reset(self) -> None:
        """Return the temperatures to their cold starting values."""
        self.brake_temp_c = self.model.brake_temp_c.min
        self.tire_temp_c = self.model.tire_temp_c.min

    def expected_lap_time(self, driver: DriverState) -> float:
        """Lap time estimate used to place the car within the lap."""
        profile = driver.profile
        jitter = self.rng.uniform(-profile.pace_jitter, profile.pace_jitter)
        return profile.base_pace * profile.consistency + jitter

    def fuel_remaining(self, driver: DriverState) -> float:
        """Fuel left after the completed laps, never below zero."""
        used = driver.laps_completed * self.model.fuel_consumption_rate_l_per_lap
        return max(0.0, self.model.fuel_start_l - used)

    def sample(self, driver: DriverState, race_time: float) -> PlayerTelemetry:
        """
        Produce one telemetry record for the current tick.

        Args:
            driver: The player's driver state
            race_time: Race clock in seconds

        Returns:
            PlayerTelemetry rounded to one decimal
        """
        rng = self.rng
        model = self.model
        lap_estimate = max(self.expected_lap_time(driver), 1.0)
        progress = (race_time - driver.lap_start_time) / lap_estimate

        if driver.in_pit:
            speed_kph = self.race.pit_speed_kph
            throttle_pct = 20 + rng.random() * 10
            brake_pct = 0.0
        else:
            speed_kph = (
                BASE_SPEED_KPH
                + math.sin(progress * math.pi * 4) * SPEED_SWING_KPH
                + rng.random() * SPEED_NOISE_KPH
            )
            braking = math.sin(progress * math.pi * 8) < BRAKING_THRESHOLD
            if braking:
                throttle_pct = 0.0
                brake_pct = 60 + rng.random() * 40
            else:
                throttle_pct = 60 + rng.random() * 40
                brake_pct = 0.0

        throttle_pct = _clamp(throttle_pct, model.throttle_pct)
        brake_pct = _clamp(brake_pct, model.brake_pct)

        brake_band = model.brake_temp_c
        brake_span = brake_band.max - brake_band.min
        if brake_pct > 0:
            brake_target = brake_band.min + brake_span * 0.7
        else:
            brake_target = brake_band.min + brake_span * 0.1
        self.brake_temp_c = _clamp(
            self.brake_temp_c
            + (brake_target - self.brake_temp_c) * TEMP_PULL
            + rng.gauss(0, BRAKE_TEMP_STEP_C),
            brake_band,
        )

        # tires may run past the band so the overheating warnings can trigger
        tire_band = model.tire_temp_c
        tire_target = tire_band.min + (tire_band.max - tire_band.min) * 0.6
        self.tire_temp_c = _clamp(
            self.tire_temp_c
            + (tire_target - self.tire_temp_c) * TEMP_PULL * 0.1
            + rng.gauss(0, TIRE_TEMP_STEP_C),
            tire_band,
            headroom=15.0,
        )

        return PlayerTelemetry(
            name=driver.profile.name,
            team=driver.profile.team,
            speed_kph=round(speed_kph, 1),
            throttle_pct=round(throttle_pct, 1),
            brake_pct=round(brake_pct, 1),
            brake_temp_c=round(self.brake_temp_c, 1),
            tire_temp_c=round(self.tire_temp_c, 1),
            fuel_remaining_l=round(self.fuel_remaining(driver), 1),
            current_lap=driver.current_lap,
            pit_lap=driver.profile.pit_lap,
            in_pit=driver.in_pit,
            track_meters=driver.track_meters(self.race.lap_length_meters),
        )
