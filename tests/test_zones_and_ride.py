import json
import unittest
from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from models.ride import PowerSample, Ride
from models.zones import ZoneRange, Zones


class TestZones(unittest.TestCase):

    def setUp(self):
        self.zones = Zones([
            ZoneRange(begin=date(2025, 1, 1), cp=280, wprime=21000),
            ZoneRange(begin=date(2024, 1, 1), end=date(2025, 1, 1), cp=260, wprime=18000),
        ])

    def test_ranges_are_sorted_by_begin(self):
        self.assertEqual([r.cp for r in self.zones.ranges], [260, 280])

    def test_which_range(self):
        self.assertEqual(self.zones.which_range(date(2024, 6, 1)), 0)
        self.assertEqual(self.zones.which_range(date(2026, 6, 1)), 1)
        self.assertEqual(self.zones.which_range(date(2023, 12, 31)), -1)

    def test_range_end_is_exclusive(self):
        self.assertEqual(self.zones.which_range(date(2024, 12, 31)), 0)
        self.assertEqual(self.zones.which_range(date(2025, 1, 1)), 1)

    def test_which_range_accepts_datetime(self):
        self.assertEqual(self.zones.which_range(datetime(2024, 6, 1, 18, 30)), 0)

    def test_cp_and_wprime_lookup(self):
        self.assertEqual(self.zones.get_cp(1), 280)
        self.assertEqual(self.zones.get_wprime(1), 21000)

    def test_single_covers_every_date(self):
        zones = Zones.single(250, 20000)
        self.assertEqual(zones.which_range(date(1990, 1, 1)), 0)
        self.assertEqual(zones.which_range(date(2090, 1, 1)), 0)
        self.assertEqual(zones.get_cp(0), 250)

    def test_empty_zones_find_nothing(self):
        self.assertEqual(Zones().which_range(date(2025, 1, 1)), -1)


def test_zones_from_file(tmp_path):
    zones_file = tmp_path / "zones.json"
    zones_file.write_text(json.dumps({
        "ranges": [
            {"begin": "2024-01-01", "end": "2025-01-01", "cp": 265, "wprime": 18500},
            {"begin": "2025-01-01", "cp": 275, "wprime": 20000},
        ]
    }))

    zones = Zones.from_file(zones_file)

    assert len(zones) == 2
    assert zones.which_range(date(2025, 3, 1)) == 1
    assert zones.get_wprime(0) == 18500
    assert zones.ranges[1].end is None


def test_zones_from_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Zones.from_file(tmp_path / "missing.json")


def test_zones_from_invalid_json(tmp_path):
    zones_file = tmp_path / "zones.json"
    zones_file.write_text("{not json")

    with pytest.raises(ValueError):
        Zones.from_file(zones_file)


@pytest.mark.parametrize("entry", [
    {"begin": "2025-01-01"},
    {"begin": "2025-13-01", "cp": 250},
    {"begin": "2025-01-01", "cp": "fast"},
])
def test_zones_reject_malformed_ranges(entry):
    with pytest.raises(ValueError, match="position 0"):
        Zones.from_dict({"ranges": [entry]})


@pytest.mark.parametrize("data", [
    [1, 2],
    {"ranges": {"begin": "2025-01-01", "cp": 250}},
])
def test_zones_reject_non_object_data(data):
    with pytest.raises(ValueError):
        Zones.from_dict(data)


def test_zones_reject_non_object_range():
    with pytest.raises(ValueError, match="position 1"):
        Zones.from_dict({"ranges": [{"begin": "2025-01-01", "cp": 250}, [1, 2]]})


def test_ride_properties():
    ride = Ride(
        ride_id="r1",
        start_time=datetime(2025, 6, 1, 9, 0),
        samples=[PowerSample(0, 0.0), PowerSample(1, 210.0)],
    )

    assert ride.data_point_count == 2
    assert ride.has_power_data
    assert ride.start_date == date(2025, 6, 1)


def test_ride_without_positive_power_has_no_power_data():
    ride = Ride(ride_id="r1", start_time=datetime(2025, 6, 1),
                samples=[PowerSample(i, 0.0) for i in range(5)])
    assert not ride.has_power_data


def test_fingerprint_tracks_sample_data():
    ride = Ride(ride_id="r1", start_time=datetime(2025, 6, 1), samples=[PowerSample(0, 200.0)])
    same = Ride(ride_id="r2", start_time=datetime(2025, 6, 2), samples=[PowerSample(0, 200.0)])
    different = Ride(ride_id="r1", start_time=datetime(2025, 6, 1), samples=[PowerSample(0, 201.0)])

    assert ride.fingerprint == same.fingerprint
    assert ride.fingerprint != different.fingerprint


def test_ride_from_secs_watts_dataframe():
    df = pd.DataFrame({'secs': [0, 1, 2], 'watts': [100, 200, 300]})

    ride = Ride.from_dataframe(df, ride_id="csv", start_time=datetime(2025, 6, 1))

    assert [s.secs for s in ride.samples] == [0, 1, 2]
    assert [s.watts for s in ride.samples] == [100, 200, 300]
    assert ride.rec_int_secs == 1.0


def test_ride_from_timestamp_power_dataframe():
    timestamps = pd.to_datetime(np.arange(0, 10, 2), unit='s', origin=pd.Timestamp('2025-06-01 09:00'))
    df = pd.DataFrame({'timestamp': timestamps, 'power': [100, np.nan, 300, 250, 200]})

    ride = Ride.from_dataframe(df)

    assert [s.secs for s in ride.samples] == [0, 2, 4, 6, 8]
    assert ride.samples[1].watts == 0
    assert ride.rec_int_secs == 2.0
    assert ride.start_date == date(2025, 6, 1)


@pytest.mark.parametrize("columns", [
    {'secs': [0, 1]},
    {'time': [0, 1], 'watts': [100, 100]},
])
def test_ride_from_dataframe_requires_time_and_power(columns):
    with pytest.raises(ValueError):
        Ride.from_dataframe(pd.DataFrame(columns))


@pytest.mark.parametrize("header", ["timestamp,power\n", "secs,watts\n"])
def test_ride_from_header_only_csv_has_no_samples(tmp_path, header):
    csv_file = tmp_path / "empty.csv"
    csv_file.write_text(header)

    ride = Ride.from_csv(csv_file)

    assert ride.samples == []
    assert not ride.has_power_data
    assert ride.rec_int_secs == 1.0


def test_ride_from_csv(tmp_path):
    csv_file = tmp_path / "morning_ride.csv"
    pd.DataFrame({'secs': range(5), 'watts': [150] * 5}).to_csv(csv_file, index=False)

    ride = Ride.from_csv(csv_file)

    assert ride.ride_id == "morning_ride"
    assert ride.data_point_count == 5


if __name__ == '__main__':
    unittest.main()
