"""Power zone ranges providing CP and W' by date."""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

logger = logging.getLogger(__name__)


class ZoneProvider(Protocol):
    """Anything that can resolve CP and W' for a ride date."""

    def which_range(self, when: date) -> int:
        ...

    def get_cp(self, index: int) -> float:
        ...

    def get_wprime(self, index: int) -> float:
        ...


@dataclass
class ZoneRange:
    """CP and W' valid from ``begin`` up to, but excluding, ``end``."""

    begin: date
    cp: float
    wprime: float
    end: Optional[date] = None

    def contains(self, when: date) -> bool:
        if when < self.begin:
            return False
        return self.end is None or when < self.end


def _parse_date(value: Union[str, date, None]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


class Zones:
    """Date-ranged CP/W' settings for a rider."""

    def __init__(self, ranges: Optional[List[ZoneRange]] = None):
        """Initialize zones.

        Args:
            ranges: Zone ranges, in any order
        """
        self.ranges = sorted(ranges or [], key=lambda r: r.begin)

    def __len__(self) -> int:
        return len(self.ranges)

    def which_range(self, when: Union[date, datetime]) -> int:
        """Get the index of the range covering a date.

        Args:
            when: Ride date

        Returns:
            Range index or -1 if no range covers the date
        """
        if isinstance(when, datetime):
            when = when.date()
        for index, zone_range in enumerate(self.ranges):
            if zone_range.contains(when):
                return index
        return -1

    def get_cp(self, index: int) -> float:
        return self.ranges[index].cp

    def get_wprime(self, index: int) -> float:
        return self.ranges[index].wprime

    @classmethod
    def single(cls, cp: float, wprime: float) -> "Zones":
        """Zones with one open-ended range covering every date."""
        return cls([ZoneRange(begin=date.min, cp=cp, wprime=wprime)])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Zones":
        """Build zones from a mapping with a ``ranges`` list.

        Raises:
            ValueError: If a range is missing fields or has bad values
        """
        if not isinstance(data, dict):
            raise ValueError("Zones data must be an object with a 'ranges' list")

        entries = data.get('ranges', [])
        if not isinstance(entries, list):
            raise ValueError("Zones 'ranges' must be a list")

        ranges = []
        for position, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ValueError(f"Invalid zone range at position {position}: expected an object")
            try:
                ranges.append(ZoneRange(
                    begin=_parse_date(entry.get('begin')) or date.min,
                    end=_parse_date(entry.get('end')),
                    cp=float(entry['cp']),
                    wprime=float(entry.get('wprime', 0)),
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid zone range at position {position}: {e}") from e

        logger.debug(f"Loaded {len(ranges)} zone ranges")
        return cls(ranges)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> "Zones":
        """Load zones from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file content is not valid zone JSON
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Zones file not found: {file_path}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid zones file {file_path}: {e}") from e

        return cls.from_dict(data)
