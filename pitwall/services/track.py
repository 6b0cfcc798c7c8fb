"""
Track geometry helpers.
"""


def track_meters(lap: int, distance_into_lap: float, lap_length: float) -> int:
    """
    Absolute distance travelled since the start, unwrapped across laps.

    Rounded to the nearest meter; every comparison of track positions must go
    through this function so that equal positions sort as ties.

    Args:
        lap: Current lap (1-based)
        distance_into_lap: Meters covered in the current lap
        lap_length: Lap length in meters

    Returns:
        Track position in whole meters
    """
    return round((lap - 1) * lap_length + distance_into_lap)
