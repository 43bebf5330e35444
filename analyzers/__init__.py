"""Analysis modules for ride power data."""

from .wprime_model import WPrimeCache, ComputationCancelled, compute
from .metrics import MinWPrime

__all__ = ['WPrimeCache', 'ComputationCancelled', 'compute', 'MinWPrime']
