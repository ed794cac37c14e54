"""Dates and hours encoded in the paths of hourly block files."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from os import PathLike
from pathlib import Path
from typing import Optional, Union

_DAY_RE = re.compile(r"[0-9]{8}", re.ASCII)
_HOUR_RE = re.compile(r"\+?[0-9]+", re.ASCII)


def datetime_from_path(path: Union[str, PathLike]) -> Optional[datetime]:
    """Read ``.../YYYYMMDD/H`` as a UTC datetime, or return None if it does not fit."""
    path = Path(path)
    day_part, hour_part = path.parent.name, path.name
    if not _DAY_RE.fullmatch(day_part) or not _HOUR_RE.fullmatch(hour_part):
        return None
    hour = int(hour_part)
    if hour > 255:
        return None
    try:
        return datetime(
            int(day_part[:4]),
            int(day_part[4:6]),
            int(day_part[6:]),
            hour,
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


def date_from_datetime(dt: datetime) -> str:
    """Format the date of ``dt`` as ``YYYYMMDD``."""
    return f"{dt.year:04d}{dt.month:02d}{dt.day:02d}"