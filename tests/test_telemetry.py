"""Tests for the player telemetry model."""

import pytest

from pitwall.models.driver import DriverState
from pitwall.schemas.race import RaceConfig, TelemetryModel
from pitwall.services.telemetry import PlayerTelemetryGenerator


@pytest.fixture
def generator(race_config, rng):
    return PlayerTelemetryGenerator(race_config, TelemetryModel(), rng)


@pytest.fixture
def driver(solo_profile):
    return DriverState.from_profile(solo_profile)


class TestFuel:
    """Test fuel depletion."""

    def test_fuel_full_on_first_lap(self, generator, driver):
        assert generator.fuel_remaining(driver) == 20.0

    def test_fuel_non_increasing_and_floored(self, generator, driver):
        readings = []
        for lap in range(1, 15):
            driver.current_lap = lap
            readings.append(generator.fuel_remaining(driver))

        assert all(later <= earlier for earlier, later in zip(readings, readings[1:]))
        assert readings[-1] == 0.0
        assert min(readings) >= 0.0

    def test_fuel_uses_consumption_rate(self, race_config, rng, driver):
        generator = PlayerTelemetryGenerator(
            race_config,
            TelemetryModel(fuel_start_l=20.0, fuel_consumption_rate_l_per_lap=2.35),
            rng,
        )
        driver.current_lap = 3

        assert generator.fuel_remaining(driver) == pytest.approx(20.0 - 2 * 2.35)


class TestSample:
    """Test telemetry sampling."""

    def test_channels_stay_in_bands(self, generator, driver):
        model = generator.model
        race_time = 0.0
        for _ in range(2000):
            race_time += 0.05
            sample = generator.sample(driver, race_time)

            assert model.throttle_pct.min <= sample.throttle_pct <= model.throttle_pct.max
            assert model.brake_pct.min <= sample.brake_pct <= model.brake_pct.max
            assert model.brake_temp_c.min <= sample.brake_temp_c <= model.brake_temp_c.max
            assert model.tire_temp_c.min <= sample.tire_temp_c <= model.tire_temp_c.max + 15
            assert 200 < sample.speed_kph < 320

    def test_throttle_and_brake_not_both_applied(self, generator, driver):
        race_time = 0.0
        saw_braking = False
        for _ in range(2000):
            race_time += 0.05
            sample = generator.sample(driver, race_time)
            assert sample.throttle_pct == 0 or sample.brake_pct == 0
            saw_braking = saw_braking or sample.brake_pct > 0

        assert saw_braking

    def test_pit_lane_telemetry(self, generator, driver):
        driver.in_pit = True
        sample = generator.sample(driver, 10.0)

        assert sample.speed_kph == generator.race.pit_speed_kph
        assert sample.brake_pct == 0
        assert 20 <= sample.throttle_pct <= 30
        assert sample.in_pit

    def test_sample_reports_position(self, rng, driver):
        generator = PlayerTelemetryGenerator(RaceConfig(lap_length_meters=100), TelemetryModel(), rng)
        driver.current_lap = 3
        driver.distance_m = 42.4

        sample = generator.sample(driver, 5.0)

        assert sample.track_meters == 242
        assert sample.current_lap == 3
        assert sample.pit_lap == driver.profile.pit_lap
        assert sample.name == driver.profile.name

    def test_reset_cools_temperatures(self, generator, driver):
        for step in range(200):
            generator.sample(driver, step * 0.05)
        generator.reset()

        assert generator.brake_temp_c == generator.model.brake_temp_c.min
        assert generator.tire_temp_c == generator.model.tire_temp_c.min
