"""Data models for ride power recordings."""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PowerSample:
    """A single power reading at an offset from ride start."""

    secs: float
    watts: float


@dataclass
class Ride:
    """A ride recording as consumed by the W' model."""

    ride_id: str
    start_time: datetime
    samples: List[PowerSample] = field(default_factory=list)
    rec_int_secs: float = 1.0

    @property
    def data_point_count(self) -> int:
        """Number of recorded samples."""
        return len(self.samples)

    @property
    def has_power_data(self) -> bool:
        """Check if actual power data is available."""
        return any(s.watts > 0 for s in self.samples)

    @property
    def start_date(self) -> date:
        """Calendar date the ride started on, used for zone lookup."""
        if isinstance(self.start_time, datetime):
            return self.start_time.date()
        return self.start_time

    @property
    def fingerprint(self) -> str:
        """Stable digest of the sample data and recording interval."""
        digest = hashlib.sha1(repr(self.rec_int_secs).encode())
        for s in self.samples:
            digest.update(f"{s.secs}:{s.watts};".encode())
        return digest.hexdigest()

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, ride_id: str = "ride",
                       start_time: Optional[datetime] = None,
                       rec_int_secs: Optional[float] = None) -> "Ride":
        """Build a ride from a DataFrame of power samples.

        Accepts either ``secs``/``watts`` columns or ``timestamp``/``power``
        columns, as produced when records are flattened into a frame.

        Args:
            df: DataFrame with one row per sample
            ride_id: Identifier for the ride
            start_time: Ride start, defaults to the first timestamp or now
            rec_int_secs: Recording interval, inferred when not given

        Returns:
            Ride object

        Raises:
            ValueError: If no time or power column is present
        """
        if 'watts' in df.columns:
            power_col = 'watts'
        elif 'power' in df.columns:
            power_col = 'power'
        else:
            raise ValueError("No power column found, expected 'watts' or 'power'")

        if 'secs' in df.columns:
            secs = pd.to_numeric(df['secs'], errors='coerce')
        elif 'timestamp' in df.columns:
            timestamps = pd.to_datetime(df['timestamp'])
            if timestamps.empty:
                secs = pd.Series(dtype=float)
            else:
                if start_time is None:
                    start_time = timestamps.iloc[0].to_pydatetime()
                secs = (timestamps - timestamps.iloc[0]).dt.total_seconds()
        else:
            raise ValueError("No time column found, expected 'secs' or 'timestamp'")

        watts = pd.to_numeric(df[power_col], errors='coerce').fillna(0)

        frame = pd.DataFrame({'secs': secs, 'watts': watts}).dropna(subset=['secs'])
        samples = [PowerSample(secs=float(s), watts=float(w))
                   for s, w in zip(frame['secs'], frame['watts'])]

        if rec_int_secs is None:
            rec_int_secs = cls._infer_recording_interval(frame['secs'].to_numpy())

        return cls(
            ride_id=ride_id,
            start_time=start_time or datetime.now(),
            samples=samples,
            rec_int_secs=rec_int_secs,
        )

    @classmethod
    def from_csv(cls, file_path: Union[str, Path], **kwargs) -> "Ride":
        """Load a ride from a CSV export of power samples."""
        file_path = Path(file_path)
        df = pd.read_csv(file_path)
        kwargs.setdefault('ride_id', file_path.stem)
        return cls.from_dataframe(df, **kwargs)

    @staticmethod
    def _infer_recording_interval(secs: np.ndarray) -> float:
        """Median positive step between offsets, 1 second when unknown."""
        if len(secs) < 2:
            return 1.0
        steps = np.diff(secs)
        steps = steps[steps > 0]
        if len(steps) == 0:
            return 1.0
        return float(np.median(steps))
