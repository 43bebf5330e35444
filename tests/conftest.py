"""Shared fixtures for W' model tests."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Make the project root importable when running pytest from anywhere
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.ride import PowerSample, Ride
from models.zones import Zones


def build_ride(watts, ride_id="test_ride", start_time=datetime(2025, 6, 1, 9, 0, 0),
               rec_int_secs=1.0, offsets=None):
    """Create a ride with one sample per recording interval."""
    if offsets is None:
        offsets = [i * rec_int_secs for i in range(len(watts))]
    samples = [PowerSample(secs=s, watts=w) for s, w in zip(offsets, watts)]
    return Ride(ride_id=ride_id, start_time=start_time, samples=samples, rec_int_secs=rec_int_secs)


@pytest.fixture
def ride_factory():
    """Factory for synthetic rides."""
    return build_ride


@pytest.fixture
def zones():
    """CP 250W and W' 20kJ for every date."""
    return Zones.single(250, 20000)


@pytest.fixture
def match_ride():
    """0W for 100s, 400W for 60s, then 0W for 100s."""
    return build_ride([0.0] * 100 + [400.0] * 60 + [0.0] * 100)
