"""
Leaderboard builder: ordering, gap, interval and overtake detection.
"""
from pitwall.core.logging import get_logger
from pitwall.models.driver import DriverState
from pitwall.schemas.race import LeaderboardEntry, OvertakeEvent, RaceConfig

logger = get_logger(__name__)


def order_by_track_position(
    drivers: list[DriverState],
    lap_length: float
) -> list[tuple[DriverState, int]]:
    """
    Sort drivers furthest-ahead first.

    ``sorted`` is stable, so drivers on exactly the same meter keep their
    input (grid) order.

    Returns:
        (driver, track_meters) pairs in race order
    """
    positions = [(d, d.track_meters(lap_length)) for d in drivers]
    return sorted(positions, key=lambda pair: pair[1], reverse=True)


def build_leaderboard(drivers: list[DriverState], config: RaceConfig) -> list[LeaderboardEntry]:
    """
    Build the ordered leaderboard for one tick.

    Gap and interval convert a distance into time using the nominal racing
    speed as a fixed reference, not the drivers' own speeds.

    Args:
        drivers: Current driver states
        config: Race configuration

    Returns:
        LeaderboardEntry list, rank 1 first
    """
    ordered = order_by_track_position(drivers, config.lap_length_meters)
    if not ordered:
        return []

    reference_mps = config.nominal_speed_mps
    leader_meters = ordered[0][1]

    entries = []
    for idx, (driver, meters) in enumerate(ordered):
        meters_behind_leader = 0 if idx == 0 else max(0, leader_meters - meters)
        gap = meters_behind_leader / reference_mps

        interval = 0.0
        if idx > 0:
            ahead_meters = ordered[idx - 1][1]
            interval = max(0, ahead_meters - meters) / reference_mps

        entries.append(
            LeaderboardEntry(
                rank=idx + 1,
                name=driver.name,
                team=driver.profile.team,
                lap=driver.current_lap,
                total_time=round(driver.total_time, 3),
                last_lap_time=round(driver.last_lap_time, 3),
                gap=round(gap, 3),
                interval=round(interval, 3),
                track_meters=meters,
                meters_behind_leader=round(meters_behind_leader, 1),
                in_pit=driver.in_pit,
            )
        )

    return entries


class OvertakeDetector:
    """Compares the running order between consecutive ticks."""

    def __init__(self):
        self.previous_order: list[str] = []

    def reset(self) -> None:
        self.previous_order = []

    def detect(self, leaderboard: list[LeaderboardEntry]) -> list[OvertakeEvent]:
        """
        Report every rank whose occupant changed since the previous tick.

        The first call after a reset only records the order.
        """
        current_order = [entry.name for entry in leaderboard]
        events = []
        for idx, (now, before) in enumerate(zip(current_order, self.previous_order)):
            if now != before:
                events.append(OvertakeEvent(rank=idx + 1, driver=now, previous_driver=before))

        for event in events:
            logger.info(f"P{event.rank}: {event.driver} ahead of {event.previous_driver}")

        self.previous_order = current_order
        return events
