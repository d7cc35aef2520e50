#!/usr/bin/env python3
"""
Date Primitives

Immutable date wrapper and reporting date ranges used to scope transaction
history. Explorer timestamps are unix seconds and are always interpreted as UTC.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum

# Base chain launched in 2023; vault activity starts in 2024
ALL_TIME_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def utc_from_timestamp(timestamp: float) -> datetime:
    """Convert unix seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class FinancialDate:
    """Immutable financial date wrapper with consistent formatting."""

    date: date

    @classmethod
    def from_string(cls, date_str: str, format: str = "%Y-%m-%d") -> "FinancialDate":
        """
        Parse from string in specified format.

        Args:
            date_str: Date string to parse
            format: Date format (default: ISO format "%Y-%m-%d")

        Returns:
            FinancialDate object
        """
        return cls(date=datetime.strptime(date_str, format).date())

    @classmethod
    def from_timestamp(cls, timestamp: float) -> "FinancialDate":
        """Create from unix timestamp (UTC)."""
        return cls(date=utc_from_timestamp(timestamp).date())

    @classmethod
    def from_datetime(cls, value: datetime) -> "FinancialDate":
        """Create from a datetime, normalising aware values to UTC."""
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return cls(date=value.date())

    def to_iso_string(self) -> str:
        """Format as YYYY-MM-DD."""
        return self.date.isoformat()

    def to_short_string(self) -> str:
        """Format as MM/DD/YYYY for statements."""
        return self.date.strftime("%m/%d/%Y")

    def __str__(self) -> str:
        """String representation."""
        return self.to_iso_string()

    def __lt__(self, other: "FinancialDate") -> bool:
        """Less than comparison."""
        return self.date < other.date

    def __le__(self, other: "FinancialDate") -> bool:
        """Less than or equal comparison."""
        return self.date <= other.date

    def __gt__(self, other: "FinancialDate") -> bool:
        """Greater than comparison."""
        return self.date > other.date

    def __ge__(self, other: "FinancialDate") -> bool:
        """Greater than or equal comparison."""
        return self.date >= other.date


class DateRangePreset(Enum):
    """Named reporting periods."""

    THIS_YEAR = "this_year"
    LAST_YEAR = "last_year"
    YTD = "ytd"
    ALL_TIME = "all_time"
    CUSTOM = "custom"


@dataclass(frozen=True)
class DateRange:
    """Inclusive UTC datetime range."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        """Check whether a moment falls within the range (inclusive)."""
        return self.start <= moment <= self.end

    def to_dict(self) -> dict[str, str]:
        """Convert to dict for JSON serialization."""
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}

    @classmethod
    def all_time(cls, now: datetime | None = None) -> "DateRange":
        """Range covering all recorded vault activity up to now."""
        return cls(start=ALL_TIME_START, end=now or utc_now())

    @classmethod
    def from_dates(cls, start: date, end: date) -> "DateRange":
        """Build a range spanning whole UTC days from start to end."""
        return cls(
            start=datetime(start.year, start.month, start.day, tzinfo=timezone.utc),
            end=datetime(end.year, end.month, end.day, 23, 59, 59, tzinfo=timezone.utc),
        )


def date_range_preset(
    preset: DateRangePreset | str,
    custom_range: DateRange | None = None,
    now: datetime | None = None,
) -> DateRange:
    """
    Resolve a named preset to a concrete date range.

    Args:
        preset: Preset enum or its string value
        custom_range: Range to use for the CUSTOM preset
        now: Reference time (default: current UTC time)

    Returns:
        DateRange for the preset. CUSTOM without a range falls back to all time.
    """
    preset = DateRangePreset(preset)
    now = now or utc_now()
    year_start = datetime(now.year, 1, 1, tzinfo=timezone.utc)

    if preset in (DateRangePreset.THIS_YEAR, DateRangePreset.YTD):
        return DateRange(start=year_start, end=now)

    if preset == DateRangePreset.LAST_YEAR:
        return DateRange(
            start=datetime(now.year - 1, 1, 1, tzinfo=timezone.utc),
            end=datetime(now.year - 1, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
        )

    if preset == DateRangePreset.CUSTOM and custom_range is not None:
        return custom_range

    return DateRange.all_time(now)
