"""
Race simulation engine.

Advances every driver once per tick: pace-driven movement along the lap,
lap completion, and the Racing <-> InPit transitions.
"""
import random

from pitwall.core.exceptions import ConfigurationError
from pitwall.core.logging import get_logger
from pitwall.models.driver import DriverState
from pitwall.schemas.race import DriverProfile, PlayerTelemetry, RaceConfig, TelemetryModel
from pitwall.services.telemetry import PlayerTelemetryGenerator

logger = get_logger(__name__)

# Per-tick multiplicative noise
RANDOM_FACTOR_MIN = 0.98
RANDOM_FACTOR_MAX = 1.02
TRAIT_BASE = 0.995
TRAIT_SCALE = 0.01


def kph_to_mps(speed_kph: float) -> float:
    return speed_kph * 1000 / 3600


class RaceSimulation:
    """
    Simulation engine for one race.

    The engine exclusively owns the driver states. It performs no I/O and
    never fails mid-tick; invalid parameters are rejected by the schemas
    and by the constructor.
    """

    def __init__(
        self,
        config: RaceConfig,
        profiles: list[DriverProfile],
        player_name: str,
        telemetry_model: TelemetryModel,
        rng: random.Random | None = None,
    ):
        if not profiles:
            raise ConfigurationError("A race needs at least one driver")
        names = [p.name for p in profiles]
        if player_name not in names:
            raise ConfigurationError(f"Player {player_name!r} is not on the grid")
        if len(set(names)) != len(names):
            raise ConfigurationError("Driver names must be unique")

        self.config = config
        self.profiles = sorted(profiles, key=lambda p: p.start_position)
        self.player_name = player_name
        self.reference_pace = min(p.base_pace for p in profiles)
        self.rng = rng or random.Random()
        self.telemetry = PlayerTelemetryGenerator(config, telemetry_model, self.rng)
        self.drivers: list[DriverState] = []
        self.reset()

    def reset(self) -> None:
        """Recreate every driver state from its profile."""
        self.drivers = [DriverState.from_profile(p) for p in self.profiles]
        self.telemetry.reset()

    @property
    def player(self) -> DriverState:
        return next(d for d in self.drivers if d.name == self.player_name)

    @property
    def finished(self) -> bool:
        """True when every driver has completed the race distance."""
        return all(d.is_finished(self.config.laps) for d in self.drivers)

    def speed_kph(self, driver: DriverState) -> float:
        """Instantaneous speed for this tick."""
        if driver.in_pit:
            return self.config.pit_speed_kph

        profile = driver.profile
        pace_multiplier = self.reference_pace / profile.base_pace
        random_factor = self.rng.uniform(RANDOM_FACTOR_MIN, RANDOM_FACTOR_MAX)
        driver_trait = TRAIT_BASE + (self.rng.random() - 0.5) * profile.pace_jitter * TRAIT_SCALE
        return self.config.nominal_speed_kph * pace_multiplier * random_factor * driver_trait

    def advance(self, race_time: float) -> None:
        """
        Run one tick for every driver.

        Args:
            race_time: Race clock in seconds at this tick
        """
        for driver in self.drivers:
            self._update_driver(driver, race_time)

    def _update_driver(self, driver: DriverState, race_time: float) -> None:
        config = self.config
        if driver.is_finished(config.laps):
            return

        driver.distance_m += kph_to_mps(self.speed_kph(driver)) * config.tick_period_s

        if driver.distance_m >= config.lap_length_meters:
            self._complete_lap(driver, race_time)

    def _complete_lap(self, driver: DriverState, race_time: float) -> None:
        # Lap time comes from the race clock, not from the distance integral
        lap_time = race_time - driver.lap_start_time
        profile = driver.profile

        driver.distance_m = 0.0
        driver.total_time += lap_time
        driver.last_lap_time = lap_time
        driver.lap_times.append(lap_time)
        driver.lap_start_time = race_time

        # The pit lap just completed releases the car
        if driver.in_pit:
            driver.pit_laps_remaining -= 1
            if driver.pit_laps_remaining <= 0:
                driver.pit_laps_remaining = 0
                driver.in_pit = False
                logger.info(f"{driver.name} rejoins from the pit lane on lap {driver.current_lap + 1}")

        # No stop on the final lap: the car takes the flag instead
        is_last_lap = driver.current_lap >= self.config.laps
        if driver.current_lap == profile.pit_lap and not driver.has_pitted and not is_last_lap:
            driver.in_pit = True
            driver.pit_laps_remaining = 1
            driver.total_time += self.config.pit_penalty_s
            driver.has_pitted = True
            logger.info(f"{driver.name} boxes after lap {driver.current_lap} (+{self.config.pit_penalty_s:.1f}s)")

        driver.current_lap += 1
        logger.debug(f"{driver.name} lap {driver.current_lap - 1}: {lap_time:.3f}s")

        if driver.is_finished(self.config.laps):
            logger.info(f"{driver.name} takes the chequered flag ({driver.total_time:.3f}s)")

    def player_telemetry(self, race_time: float) -> PlayerTelemetry:
        return self.telemetry.sample(self.player, race_time)
