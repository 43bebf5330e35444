"""W' balance model for ride power data.

Implements the W' expenditure and reconstitution model from Skiba et al.,
"Modeling the Expenditure and Reconstitution of Work Capacity above
Critical Power", Med Sci Sports Exerc 2012, and a detector for "matches",
the efforts that measurably burn W'.

The pipeline runs strictly forward:

1. resample_power   - drop non-advancing samples, zero-fill recording gaps
2. smooth_power     - natural cubic spline evaluated at every second
3. resolve_parameters - CP and W' from the zone provider for the ride date
4. estimate_tau     - recovery time constant from average power below CP
5. compute_balance  - decayed sum of power above CP over the last 20 minutes
6. detect_matches   - intervals above CP with a material W' cost
"""

import logging
import math
import threading
import time
from collections import OrderedDict
from datetime import date
from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.interpolate import CubicSpline

from config.settings import WPrimeConfig
from models.ride import PowerSample, Ride
from models.wprime import BalanceResult, BalanceSeries, DenseSeries, Match, MarkerSeries, ModelParameters
from models.zones import ZoneProvider

logger = logging.getLogger(__name__)


class ComputationCancelled(Exception):
    """Raised when a caller cancels an in-flight balance computation."""


def resample_power(samples: Iterable[PowerSample], rec_int_secs: float = 1.0) -> DenseSeries:
    """Convert raw samples into a gap-free series of spline knots.

    Samples that do not advance past the last accepted offset, that sit
    before the ride start, or whose offset is not a finite number are
    dropped. Gaps of more than one recording interval are filled with zero
    power at each missing interval step, so dropouts read as coasting.

    Args:
        samples: Power samples in recording order
        rec_int_secs: Recording interval in seconds

    Returns:
        DenseSeries of offsets and watts, empty if nothing was accepted
    """
    step = rec_int_secs if rec_int_secs and rec_int_secs > 0 else 1.0
    tolerance = step * 1e-6

    seconds = []
    watts = []
    last = None
    dropped = 0

    for sample in samples:
        if (not math.isfinite(sample.secs) or sample.secs < 0
                or (last is not None and sample.secs <= last)):
            dropped += 1
            continue

        if last is not None:
            t = last + step
            while t < sample.secs - tolerance:
                seconds.append(t)
                watts.append(0.0)
                t += step

        value = sample.watts if math.isfinite(sample.watts) else 0.0
        seconds.append(float(sample.secs))
        watts.append(float(value))
        last = sample.secs

    if dropped:
        logger.warning(f"Dropped {dropped} samples that did not advance in time")

    return DenseSeries(seconds=seconds, watts=watts)


def smooth_power(dense: DenseSeries) -> np.ndarray:
    """Evaluate a natural cubic spline through the series at every second.

    Seconds before the first knot carry no signal and are zero. One knot
    passes its value through, two knots interpolate linearly (which is what
    a natural spline through two points is).

    Args:
        dense: Resampled knots

    Returns:
        Array of power per second, indexed 0..last second inclusive
    """
    if dense.is_empty:
        return np.zeros(0)

    grid = np.arange(dense.last_second + 1, dtype=float)
    values = np.zeros(len(grid))
    inside = grid >= dense.seconds[0]

    if len(dense) == 1:
        values[inside] = dense.watts[0]
    elif len(dense) == 2:
        values[inside] = np.interp(grid[inside], dense.seconds, dense.watts)
    else:
        spline = CubicSpline(dense.seconds, dense.watts, bc_type='natural')
        values[inside] = spline(grid[inside])

    return values


def resolve_parameters(ride_date: date, zones: Optional[ZoneProvider]) -> Tuple[float, float]:
    """Get CP and W' for the ride date.

    Without any zone provider the configured defaults apply. A provider
    that has no range for the date yields CP = W' = 0; the model still
    runs and produces a trivial curve.

    Args:
        ride_date: Date the ride started
        zones: Zone provider or None

    Returns:
        Tuple of (cp, wprime)
    """
    if zones is None:
        return float(WPrimeConfig.DEFAULT_CP), float(WPrimeConfig.DEFAULT_WPRIME)

    zone_range = zones.which_range(ride_date)
    if zone_range < 0:
        logger.warning(f"No zone range covers {ride_date}, using CP=0 and W'=0")
        return 0.0, 0.0

    return float(zones.get_cp(zone_range)), float(zones.get_wprime(zone_range))


def estimate_tau(power: np.ndarray, cp: float) -> Tuple[int, bool]:
    """Estimate the W' recovery time constant.

    tau = 546 * e^(-0.01 * (CP - average power below CP)) + 316, rounded
    down. When no second is below CP there is no recovery to measure and
    tau takes its limit for recovery at CP, 546 + 316.

    Args:
        power: Power per second
        cp: Critical power

    Returns:
        Tuple of (tau, estimated) where estimated is False for the fallback
    """
    below = power[power < cp]
    if len(below) == 0:
        tau = WPrimeConfig.TAU_SCALE + WPrimeConfig.TAU_OFFSET
        logger.info(f"No power below CP={cp:.0f}W, using fallback tau={int(tau)}s")
        return int(math.floor(tau)), False

    avg_below_cp = float(below.sum()) / len(below)
    tau = WPrimeConfig.TAU_SCALE * math.exp(-WPrimeConfig.TAU_DECAY_RATE * (cp - avg_below_cp)) + WPrimeConfig.TAU_OFFSET
    return int(math.floor(tau)), True


def compute_balance(power: np.ndarray, cp: float, wprime: float, tau: int,
                    cancel_event: Optional[threading.Event] = None) -> BalanceSeries:
    """Compute W' balance for every second.

    balance[i] = W' - sum(excess[i - j] * e^(-j / tau)) for j < min(1200, i),
    where excess is power above CP. Terms never reach back past the first
    second, so balance[0] is always W'.

    Args:
        power: Power per second
        cp: Critical power
        wprime: W' in joules
        tau: Recovery time constant in seconds
        cancel_event: Set by the caller to abandon the computation

    Returns:
        BalanceSeries with the time axis in minutes

    Raises:
        ComputationCancelled: If cancel_event is set while computing
    """
    n = len(power)
    if n == 0:
        return BalanceSeries(minutes=[], balance=[])

    window = int(WPrimeConfig.DECAY_PERIOD_SECS)
    excess = np.maximum(np.asarray(power, dtype=float) - cp, 0.0)
    excess[0] = 0.0
    decay = np.exp(-np.arange(window) / float(tau))

    sumproduct = np.empty(n)
    block = max(1, int(WPrimeConfig.CANCEL_CHECK_BLOCK_SECS))
    for start in range(0, n, block):
        if cancel_event is not None and cancel_event.is_set():
            raise ComputationCancelled(f"W' computation cancelled at second {start} of {n}")

        stop = min(start + block, n)
        lo = max(0, start - (window - 1))
        full = np.convolve(excess[lo:stop], decay)
        sumproduct[start:stop] = full[start - lo:stop - lo]

    balance = wprime - sumproduct * WPrimeConfig.MULT_CONST
    minutes = np.arange(n) / 60.0

    return BalanceSeries(
        minutes=minutes,
        balance=balance,
        min_balance=float(balance.min()),
        max_balance=float(balance.max()),
    )


def _rolling_average(values: np.ndarray, window: int) -> np.ndarray:
    """Trailing rolling mean; seconds without a full window keep their value."""
    series = pd.Series(values, dtype=float)
    smoothed = series.rolling(window=window).mean()
    return smoothed.fillna(series).to_numpy()


def detect_matches(power: np.ndarray, balance: np.ndarray, cp: float,
                   minutes: Optional[np.ndarray] = None) -> Tuple[Tuple[Match, ...], MarkerSeries]:
    """Find intervals above CP that cost a material amount of W'.

    A match opens when either the per-second power or its 25 second rolling
    average reaches CP, and closes when both drop below it. The end is then
    walked back to the last second the unsmoothed power was at CP, so the
    rolling average's tail does not stretch the match.

    Args:
        power: Power per second
        balance: W' balance per second, same length as power
        cp: Critical power
        minutes: Time axis for markers, defaults to index / 60

    Returns:
        Tuple of (matches in start order, markers for significant matches)
    """
    raw = np.asarray(power, dtype=float)
    balance = np.asarray(balance, dtype=float)
    if minutes is None:
        minutes = np.arange(len(raw)) / 60.0

    smoothed = _rolling_average(raw, int(WPrimeConfig.MATCH_SMOOTHING_SECS))
    min_joules = WPrimeConfig.MATCH_MIN_JOULES

    matches = []
    in_match = False
    start = 0

    for i in range(len(raw)):
        if not in_match and (raw[i] >= cp or smoothed[i] >= cp):
            in_match = True
            start = i

        if in_match and raw[i] < cp and smoothed[i] < cp:
            end = i - 1
            while end > start and raw[end] < cp:
                end -= 1

            if end > start:
                cost = float(balance[start] - balance[end])
                if cost >= min_joules:
                    matches.append(Match(start=start, stop=end, secs=end - start + 1, cost=cost))
                else:
                    logger.debug(f"Discarded match {start}-{end}s costing {cost:.0f}J")

            in_match = False

    marker_minutes = []
    marker_balance = []
    for match in matches:
        if match.cost >= WPrimeConfig.MATCH_SIGNIFICANT_JOULES:
            for index in (match.start, match.stop):
                marker_minutes.append(minutes[index])
                marker_balance.append(balance[index])

    return tuple(matches), MarkerSeries(minutes=marker_minutes, balance=marker_balance)


def _run_model(ride: Ride, cp: float, wprime: float,
               cancel_event: Optional[threading.Event] = None) -> BalanceResult:
    started = time.perf_counter()

    dense = resample_power(ride.samples, ride.rec_int_secs)
    if dense.is_empty:
        logger.debug(f"Ride {ride.ride_id} has no usable samples")
        return BalanceResult.empty()

    power = smooth_power(dense)
    tau, tau_estimated = estimate_tau(power, cp)
    logger.debug(f"Data preparation took {time.perf_counter() - started:.3f}s")

    series = compute_balance(power, cp, wprime, tau, cancel_event)
    matches, markers = detect_matches(power, series.balance, cp, series.minutes)

    logger.info(
        f"Ride {ride.ride_id}: CP={cp:.0f}W W'={wprime:.0f}J tau={tau}s, "
        f"min W' bal {series.min_balance:.0f}J, {len(matches)} matches"
    )
    logger.debug(f"W' model took {time.perf_counter() - started:.3f}s")

    return BalanceResult(
        parameters=ModelParameters(cp=cp, wprime=wprime, tau=tau, tau_estimated=tau_estimated),
        series=series,
        matches=matches,
        markers=markers,
    )


def compute(ride: Optional[Ride], zones: Optional[ZoneProvider] = None,
            cancel_event: Optional[threading.Event] = None) -> BalanceResult:
    """Run the W' balance model over a ride.

    A missing ride, a ride without samples or a ride without power data
    gives the empty result; check ``result.is_empty``.

    Args:
        ride: Ride to analyse
        zones: Provider for CP and W', None to use configured defaults
        cancel_event: Set by the caller to abandon the computation

    Returns:
        A fresh BalanceResult

    Raises:
        ComputationCancelled: If cancel_event is set while computing
    """
    if ride is None or ride.data_point_count == 0 or not ride.has_power_data:
        return BalanceResult.empty()

    cp, wprime = resolve_parameters(ride.start_date, zones)
    return _run_model(ride, cp, wprime, cancel_event)


class WPrimeCache:
    """Memoizes model results per ride and resolved CP/W'."""

    def __init__(self, max_entries: Optional[int] = None):
        """Initialize the cache.

        Args:
            max_entries: Results kept before the least recently used is evicted
        """
        self.max_entries = max_entries or WPrimeConfig.CACHE_MAX_ENTRIES
        self._results = OrderedDict()

    def __len__(self) -> int:
        return len(self._results)

    def get_or_compute(self, ride: Optional[Ride], zones: Optional[ZoneProvider] = None,
                       cancel_event: Optional[threading.Event] = None) -> BalanceResult:
        """Return the cached result for the ride, computing it on a miss."""
        if ride is None or ride.data_point_count == 0 or not ride.has_power_data:
            return BalanceResult.empty()

        cp, wprime = resolve_parameters(ride.start_date, zones)
        key = (ride.ride_id, ride.fingerprint, cp, wprime)

        if key in self._results:
            self._results.move_to_end(key)
            return self._results[key]

        result = _run_model(ride, cp, wprime, cancel_event)
        self._results[key] = result
        while len(self._results) > self.max_entries:
            self._results.popitem(last=False)
        return result

    def invalidate(self, ride_id: Optional[str] = None) -> None:
        """Drop cached results for one ride, or everything."""
        if ride_id is None:
            self._results.clear()
            return
        for key in [k for k in self._results if k[0] == ride_id]:
            del self._results[key]
