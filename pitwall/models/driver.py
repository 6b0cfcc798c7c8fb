# pitwall/models/driver.py
"""Mutable per-driver race state."""
from dataclasses import dataclass, field

from pitwall.schemas.race import DriverProfile
from pitwall.services.track import track_meters


@dataclass
class DriverState:
    """Race progress of one driver, owned by the simulation engine."""

    profile: DriverProfile
    current_lap: int = 1
    distance_m: float = 0.0  # distance into the current lap
    total_time: float = 0.0
    lap_start_time: float = 0.0
    last_lap_time: float = 0.0
    lap_times: list[float] = field(default_factory=list)
    in_pit: bool = False
    pit_laps_remaining: int = 0
    has_pitted: bool = False

    @classmethod
    def from_profile(cls, profile: DriverProfile) -> "DriverState":
        return cls(profile=profile)

    @property
    def name(self) -> str:
        return self.profile.name

    @property
    def laps_completed(self) -> int:
        return self.current_lap - 1

    def is_finished(self, total_laps: int) -> bool:
        """True once the driver has completed the last lap."""
        return self.current_lap > total_laps

    def track_meters(self, lap_length: float) -> int:
        return track_meters(self.current_lap, self.distance_m, lap_length)

    def __repr__(self) -> str:
        return (
            f"<DriverState(name={self.name!r}, lap={self.current_lap}, "
            f"distance={self.distance_m:.1f}, in_pit={self.in_pit})>"
        )
