"""Data models for W' balance results."""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

import numpy as np


def _frozen_array(values) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class DenseSeries:
    """Resampled power knots with recording gaps filled by zeros.

    Offsets strictly increase and are spaced by the recording interval
    wherever a gap was filled. Only for 1 second recordings that start at
    zero is there one knot per second with index i being second i. Other
    recordings keep their own offsets here, and smooth_power() produces the
    per-second series indexed 0..last_second.
    """

    seconds: np.ndarray
    watts: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'seconds', _frozen_array(self.seconds))
        object.__setattr__(self, 'watts', _frozen_array(self.watts))

    def __len__(self) -> int:
        return len(self.seconds)

    @property
    def is_empty(self) -> bool:
        return len(self.seconds) == 0

    @property
    def last_second(self) -> int:
        return int(self.seconds[-1]) if len(self.seconds) else -1


@dataclass(frozen=True)
class ModelParameters:
    """Parameters the balance model ran with."""

    cp: float
    wprime: float
    tau: int
    tau_estimated: bool = True  # False when the no-recovery fallback tau was used


@dataclass(frozen=True, eq=False)
class BalanceSeries:
    """W' balance per second, with the time axis in minutes."""

    minutes: np.ndarray
    balance: np.ndarray
    min_balance: float = 0.0
    max_balance: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'minutes', _frozen_array(self.minutes))
        object.__setattr__(self, 'balance', _frozen_array(self.balance))

    def __len__(self) -> int:
        return len(self.balance)

    @property
    def is_empty(self) -> bool:
        return len(self.balance) == 0


@dataclass(frozen=True)
class Match:
    """A high-intensity effort that measurably depleted W'."""

    start: int
    stop: int
    secs: int
    cost: float


@dataclass(frozen=True, eq=False)
class MarkerSeries:
    """Start/stop points of significant matches, two per match."""

    minutes: np.ndarray = field(default_factory=lambda: np.zeros(0))
    balance: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        object.__setattr__(self, 'minutes', _frozen_array(self.minutes))
        object.__setattr__(self, 'balance', _frozen_array(self.balance))

    def __len__(self) -> int:
        return len(self.minutes)


@dataclass(frozen=True, eq=False)
class BalanceResult:
    """Complete output of one W' model run."""

    parameters: ModelParameters
    series: BalanceSeries
    matches: Tuple[Match, ...] = ()
    markers: MarkerSeries = field(default_factory=MarkerSeries)

    @classmethod
    def empty(cls) -> "BalanceResult":
        """The "nothing to compute" result."""
        return cls(
            parameters=ModelParameters(cp=0, wprime=0, tau=0, tau_estimated=False),
            series=BalanceSeries(minutes=[], balance=[]),
        )

    @property
    def is_empty(self) -> bool:
        return self.series.is_empty

    @property
    def min_balance(self) -> float:
        return self.series.min_balance

    @property
    def max_balance(self) -> float:
        return self.series.max_balance

    @property
    def min_balance_kj(self) -> float:
        return self.series.min_balance / 1000.0

    def to_dict(self, include_series: bool = False) -> Dict[str, Any]:
        """Get a JSON-friendly summary of the result.

        Args:
            include_series: Also include the per-second balance arrays

        Returns:
            Dictionary with parameters, extrema and matches
        """
        data = {
            'cp': self.parameters.cp,
            'wprime': self.parameters.wprime,
            'tau': self.parameters.tau,
            'tau_estimated': self.parameters.tau_estimated,
            'duration_seconds': len(self.series),
            'min_balance': self.min_balance,
            'max_balance': self.max_balance,
            'min_balance_kj': round(self.min_balance_kj, 1),
            'matches': [
                {'start': m.start, 'stop': m.stop, 'secs': m.secs, 'cost': round(m.cost, 1)}
                for m in self.matches
            ],
            'significant_matches': len(self.markers) // 2,
        }
        if include_series:
            data['minutes'] = self.series.minutes.tolist()
            data['balance'] = self.series.balance.tolist()
        return data
