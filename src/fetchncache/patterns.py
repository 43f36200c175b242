"""
Pattern Resolver - Timestamp fragments for templated target paths.

A pattern is a compact ``<DateTimeFormat>-<Timezone>-<Processing>`` string,
for example ``DateTime-UTC-slug`` or ``DateOnly-Europe/Paris-none``.

Supported datetime formats:
- DateTime            - 2006-01-02 15:04:05
- DateOnly            - 2006-01-02
- TimeOnly            - 15:04:05
- RFC3339             - 2006-01-02T15:04:05Z (or +hh:mm outside UTC)
- Kitchen             - 3:04PM
- Stamp               - Jan  2 15:04:05
- DATETIME_SIMPLE_FS  - 2006-01-02 1504

Supported processing:
- slug - replace every ":" with "-"
- none - keep the formatted text as is
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fetchncache.exceptions import (
    InvalidPatternError,
    UnknownTimezoneError,
    UnsupportedDateTimeFormatError,
    UnsupportedProcessingError,
)

UTC_NAME = "UTC"

PROCESSING_SLUG = "slug"
PROCESSING_NONE = "none"
PROCESSINGS = (PROCESSING_SLUG, PROCESSING_NONE)

# Zone abbreviations (EST, JST, CEST) are rejected even where the tz database
# ships a file of that name.
_ABBREVIATION = re.compile(r"^[A-Z]{3,4}$")
# Canonical IANA zones that happen to look like abbreviations.
_SHORT_IANA_NAMES = frozenset({"GMT", "UCT", "CET", "EET", "WET", "MET", "PRC", "ROC", "ROK"})

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _fmt_rfc3339(moment: datetime) -> str:
    offset = moment.utcoffset()
    base = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if not offset:
        return base + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{base}{sign}{hours:02d}:{minutes:02d}"


def _fmt_kitchen(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d}{suffix}"


def _fmt_stamp(moment: datetime) -> str:
    return f"{_MONTHS[moment.month - 1]} {moment.day:>2} {moment:%H:%M:%S}"


DATETIME_FORMATS: dict[str, Callable[[datetime], str]] = {
    "DateTime": lambda m: m.strftime("%Y-%m-%d %H:%M:%S"),
    "DateOnly": lambda m: m.strftime("%Y-%m-%d"),
    "TimeOnly": lambda m: m.strftime("%H:%M:%S"),
    "RFC3339": _fmt_rfc3339,
    "Kitchen": _fmt_kitchen,
    "Stamp": _fmt_stamp,
    "DATETIME_SIMPLE_FS": lambda m: m.strftime("%Y-%m-%d %H%M"),
}


@dataclass(frozen=True)
class PatternSpec:
    """Decoded form of a pattern string."""

    datetime_format: str
    timezone: str
    processing: str

    @property
    def tz(self) -> tzinfo:
        return load_timezone(self.timezone)

    def render(self, now: datetime) -> str:
        """Render ``now`` according to this pattern."""
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        formatted = DATETIME_FORMATS[self.datetime_format](now.astimezone(self.tz))
        if self.processing == PROCESSING_SLUG:
            return formatted.replace(":", "-")
        return formatted


def load_timezone(name: str) -> tzinfo:
    """Return the tzinfo for ``UTC`` or an IANA zone name."""
    if name == UTC_NAME:
        return timezone.utc
    if not name or (_ABBREVIATION.match(name) and name not in _SHORT_IANA_NAMES):
        raise UnknownTimezoneError(
            f"unknown timezone {name!r} (use UTC or an IANA name such as Europe/Paris)",
            context={"timezone": name},
        )
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise UnknownTimezoneError(
            f"unknown timezone {name!r}: {exc}",
            context={"timezone": name},
        ) from exc


def parse_pattern(pattern: str) -> PatternSpec:
    """Validate a pattern string and decode it.

    Raises:
        InvalidPatternError: pattern does not have exactly 3 components
        UnknownTimezoneError: timezone is neither UTC nor a known IANA zone
        UnsupportedDateTimeFormatError: unknown datetime format
        UnsupportedProcessingError: unknown processing
    """
    parts = pattern.split("-")
    if len(parts) != 3:
        raise InvalidPatternError(
            "pattern must have 3 components: DateTime-Timezone-Processing",
            context={"pattern": pattern},
        )
    fmt, tz_name, processing = parts

    if fmt not in DATETIME_FORMATS:
        raise UnsupportedDateTimeFormatError(
            f"unsupported datetime format: {fmt} (supported: {', '.join(DATETIME_FORMATS)})",
            context={"pattern": pattern, "format": fmt},
        )
    load_timezone(tz_name)
    if processing not in PROCESSINGS:
        raise UnsupportedProcessingError(
            f"unsupported processing: {processing} (supported: {', '.join(PROCESSINGS)})",
            context={"pattern": pattern, "processing": processing},
        )
    return PatternSpec(datetime_format=fmt, timezone=tz_name, processing=processing)


def resolve_pattern(pattern: str, now: datetime | None = None) -> str:
    """Turn ``pattern`` into a timestamp fragment.

    ``now`` defaults to the current wall-clock time; a naive value is read as UTC.
    """
    spec = parse_pattern(pattern)
    return spec.render(now if now is not None else datetime.now(timezone.utc))


__all__ = [
    "DATETIME_FORMATS",
    "PROCESSINGS",
    "PatternSpec",
    "load_timezone",
    "parse_pattern",
    "resolve_pattern",
]
