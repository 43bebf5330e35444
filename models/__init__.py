"""Data models for W' Balance Analyser."""

from .ride import Ride, PowerSample
from .zones import ZoneProvider, ZoneRange, Zones
from .wprime import DenseSeries, ModelParameters, BalanceSeries, Match, MarkerSeries, BalanceResult

__all__ = [
    'Ride',
    'PowerSample',
    'ZoneProvider',
    'ZoneRange',
    'Zones',
    'DenseSeries',
    'ModelParameters',
    'BalanceSeries',
    'Match',
    'MarkerSeries',
    'BalanceResult'
]
