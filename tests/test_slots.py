"""
Tests for services/availability/slots.py

Grid generation for one working-hours window.
"""
import unittest
from datetime import time, timedelta

from booking_api.core.errors import ConfigurationError
from booking_api.services.availability.slots import generate_slots, parse_wall_clock, window_bounds
from tests.base import MONDAY, at


class TestSlots(unittest.TestCase):
    """Tests for slot generation functions."""

    def test_full_day_of_hourly_slots(self):
        slots = generate_slots(MONDAY, "09:00", "17:00", 60)

        self.assertEqual(len(slots), 8)
        self.assertEqual(slots[0], at(MONDAY, "09:00"))
        self.assertEqual(slots[-1], at(MONDAY, "16:00"))

    def test_slot_count_is_floor_of_window_over_duration(self):
        for duration in (15, 25, 45, 60, 90, 120, 480):
            slots = generate_slots(MONDAY, "09:00", "17:00", duration)
            self.assertEqual(len(slots), (8 * 60) // duration, duration)

            step = timedelta(minutes=duration)
            for previous, current in zip(slots, slots[1:]):
                self.assertEqual(current - previous, step)
            self.assertLessEqual(slots[-1] + step, at(MONDAY, "17:00"))

    def test_duration_equal_to_window_gives_one_slot(self):
        self.assertEqual(generate_slots(MONDAY, "09:00", "10:30", 90), [at(MONDAY, "09:00")])

    def test_duration_longer_than_window_gives_no_slots(self):
        self.assertEqual(generate_slots(MONDAY, "09:00", "10:00", 61), [])

    def test_partial_final_slot_is_dropped(self):
        slots = generate_slots(MONDAY, "09:00", "10:40", 30)
        self.assertEqual(slots, [at(MONDAY, "09:00"), at(MONDAY, "09:30"), at(MONDAY, "10:00")])

    def test_seconds_precision_times(self):
        slots = generate_slots(MONDAY, "09:00:00", "11:00:00", 60)
        self.assertEqual(slots, [at(MONDAY, "09:00"), at(MONDAY, "10:00")])

    def test_non_positive_duration_rejected(self):
        with self.assertRaises(ValueError):
            generate_slots(MONDAY, "09:00", "17:00", 0)

    def test_malformed_time_raises_configuration_error(self):
        with self.assertRaises(ConfigurationError):
            generate_slots(MONDAY, "nine", "17:00", 60)
        with self.assertRaises(ConfigurationError):
            generate_slots(MONDAY, "09:00", None, 60)

    def test_inverted_window_raises_configuration_error(self):
        with self.assertRaises(ConfigurationError) as ctx:
            window_bounds(MONDAY, "17:00", "09:00")
        self.assertEqual(ctx.exception.code, "invalid_working_hours")

    def test_parse_wall_clock_accepts_time_objects(self):
        self.assertEqual(parse_wall_clock(time(8, 30)), time(8, 30))
        self.assertEqual(parse_wall_clock(" 08:30 "), time(8, 30))


if __name__ == "__main__":
    unittest.main()
