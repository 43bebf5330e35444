"""Ride metrics derived from the W' balance model."""

import logging
from typing import Optional

from analyzers.wprime_model import compute
from models.ride import Ride
from models.zones import ZoneProvider

logger = logging.getLogger(__name__)


class MinWPrime:
    """Lowest W' balance reached during a ride, in kJ."""

    symbol = "skiba_wprime_low"
    internal_name = "Minimum W'"
    name = "Minimum W'"
    metric_units = "kJ"
    imperial_units = "kJ"
    precision = 1
    can_aggregate = False

    def __init__(self):
        self.value = 0.0

    def compute(self, ride: Optional[Ride], zones: Optional[ZoneProvider] = None) -> float:
        """Run the full W' model and keep the minimum balance.

        Args:
            ride: Ride to measure
            zones: Provider for CP and W'

        Returns:
            Minimum W' balance in kJ, 0 for rides without power
        """
        result = compute(ride, zones)
        self.value = result.min_balance_kj
        return self.value

    def formatted(self) -> str:
        return f"{self.value:.{self.precision}f} {self.metric_units}"
