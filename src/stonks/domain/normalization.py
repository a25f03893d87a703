"""Turn scraped earnings date cells into canonical UTC instants.

Yahoo renders each cell as ``Mon DD, YYYY, H AM/PM TZ`` but the markup tends to
glue the pieces together (``4 PMEST``, ``4PMUTC``). Cells ending in an Eastern
abbreviation carry that abbreviation's fixed offset (EST is UTC-5, EDT is UTC-4);
everything else is taken as UTC.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, timezone, tzinfo
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

EASTERN_OFFSETS: Final[dict[str, tzinfo]] = {
    "EST": timezone(timedelta(hours=-5), "EST"),
    "EDT": timezone(timedelta(hours=-4), "EDT"),
}
MIN_TOKEN_LENGTH: Final[int] = 5
DATE_PATTERN: Final[str] = "%b %d, %Y, %I %p"

_MERIDIEM = re.compile(r"\s*(AM|PM)\s*")
_WHITESPACE = re.compile(r"\s+")


class TimestampParseError(ValueError):
    """Raised when a scraped token does not match the expected date pattern."""

    def __init__(self, token: str, reason: str) -> None:
        super().__init__(f"Could not parse earnings date {token!r}: {reason}")
        self.token = token


@dataclass(slots=True)
class NormalizationResult:
    instants: set[datetime] = field(default_factory=set["datetime"])
    failures: list[TimestampParseError] = field(default_factory=list["TimestampParseError"])
    ignored: int = 0


def normalize_timestamp(raw: str) -> datetime | None:
    """Return the UTC instant for ``raw``, or ``None`` for noise tokens.

    Raises ``TimestampParseError`` when the token is long enough to be a date but
    does not parse.
    """

    token = raw.strip()
    if len(token) < MIN_TOKEN_LENGTH:
        return None

    suffix = token[-3:]
    if suffix in EASTERN_OFFSETS:
        zone = EASTERN_OFFSETS[suffix]
        local_text = token[:-3]
    else:
        zone = UTC
        local_text = token.removesuffix("UTC")

    local_text = _MERIDIEM.sub(r" \1 ", local_text)
    local_text = _WHITESPACE.sub(" ", local_text).strip()

    try:
        wall_clock = datetime.strptime(local_text, DATE_PATTERN)  # noqa: DTZ007
    except ValueError as exc:
        raise TimestampParseError(token, str(exc)) from exc

    return wall_clock.replace(tzinfo=zone).astimezone(UTC)


def normalize_tokens(tokens: Iterable[str]) -> NormalizationResult:
    """Normalise a batch; failures are collected and never stop the batch."""

    result = NormalizationResult()
    for token in tokens:
        try:
            instant = normalize_timestamp(token)
        except TimestampParseError as exc:
            result.failures.append(exc)
            continue
        if instant is None:
            result.ignored += 1
            continue
        result.instants.add(instant)
    return result
