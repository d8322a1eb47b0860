"""Helpers that compute storage directories, file names and limits."""

import mimetypes
import re
import secrets
import string
from datetime import datetime
from typing import Optional, Union

from .exceptions import ConfigurationError

ALPHANUMERIC = string.ascii_letters + string.digits

_DAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)
_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)

# Longest alternatives first so "mmm" never matches as "mm" + "m".
_DATE_TOKENS = re.compile(
    r"dddd|ddd|dd|d|mmmm|mmm|mm|m|yyyy|yy|HH|H|hh|h|MM|M|ss|s|TT|tt"
    r"|'[^']*'|\"[^\"]*\""
)

_SIZE_UNITS = {
    "b": 1,
    "kb": 1 << 10,
    "mb": 1 << 20,
    "gb": 1 << 30,
    "tb": 1 << 40,
    "pb": 1 << 50,
}
_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmgtp]?b)?\s*$", re.IGNORECASE)

# Canonical extension per media type where the stdlib table disagrees.
_CANONICAL_EXTENSIONS = {
    "image/jpeg": "jpeg",
    "image/pjpeg": "jpeg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/tiff": "tif",
    "image/bmp": "bmp",
    "image/svg+xml": "svg",
    "image/avif": "avif",
}


def format_date(moment: datetime, pattern: str) -> str:
    """
    Render ``moment`` with a dateformat-style token pattern.

    Supported tokens: ``d dd ddd dddd`` (day), ``m mm mmm mmmm`` (month),
    ``yy yyyy`` (year), ``H HH h hh`` (hour), ``M MM`` (minute), ``s ss``
    (second), ``tt TT`` (am/pm). Quoted text is copied without quotes and
    everything else is copied as-is.

    Example:
        format_date(datetime(2024, 3, 7), "yyyy/mmm/d") -> "2024/Mar/7"
    """
    hour12 = moment.hour % 12 or 12
    values = {
        "d": str(moment.day),
        "dd": f"{moment.day:02d}",
        "ddd": _DAY_NAMES[moment.weekday()][:3],
        "dddd": _DAY_NAMES[moment.weekday()],
        "m": str(moment.month),
        "mm": f"{moment.month:02d}",
        "mmm": _MONTH_NAMES[moment.month - 1][:3],
        "mmmm": _MONTH_NAMES[moment.month - 1],
        "yy": f"{moment.year % 100:02d}",
        "yyyy": str(moment.year),
        "H": str(moment.hour),
        "HH": f"{moment.hour:02d}",
        "h": str(hour12),
        "hh": f"{hour12:02d}",
        "M": str(moment.minute),
        "MM": f"{moment.minute:02d}",
        "s": str(moment.second),
        "ss": f"{moment.second:02d}",
        "tt": "am" if moment.hour < 12 else "pm",
        "TT": "AM" if moment.hour < 12 else "PM",
    }

    def replace(match: "re.Match[str]") -> str:
        token = match.group(0)
        if token[0] in "'\"":
            return token[1:-1]
        return values[token]

    return _DATE_TOKENS.sub(replace, pattern)


def random_filename(length: int) -> str:
    """Random alphanumeric string of ``length`` characters."""
    return "".join(secrets.choice(ALPHANUMERIC) for _ in range(length))


def parse_size(value: Union[int, float, str]) -> int:
    """
    Convert a human-readable size such as ``"10mb"`` into bytes.

    Units are 1024-based. Plain numbers are taken as bytes.

    Raises:
        ConfigurationError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid file size: {value!r}", field="max_file_size")
    if isinstance(value, (int, float)):
        return int(value)

    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ConfigurationError(f"Invalid file size: {value!r}", field="max_file_size")

    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[(unit or "b").lower()])


def mime_extension(content_type: Optional[str]) -> Optional[str]:
    """Canonical file extension (without dot) for a media type, or None."""
    if not content_type:
        return None

    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type in _CANONICAL_EXTENSIONS:
        return _CANONICAL_EXTENSIONS[media_type]

    guessed = mimetypes.guess_extension(media_type)
    return guessed.lstrip(".") if guessed else None
