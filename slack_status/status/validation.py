"""Input checks run before any remote call is made."""
import re
from decimal import Decimal
from pathlib import Path
from typing import Optional

from slack_status.config import VALID_IMAGE_FORMATS
from slack_status.status.status import StatusIntent


class ValidationError(ValueError):
    """Raised when user input cannot produce a valid status intent."""


_UNITS = {
    "ns": Decimal("0.000000001"),
    "us": Decimal("0.000001"),
    "µs": Decimal("0.000001"),
    "μs": Decimal("0.000001"),
    "ms": Decimal("0.001"),
    "s": Decimal(1),
    "m": Decimal(60),
    "h": Decimal(3600),
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def _parse_seconds(text: str) -> Decimal:
    """Go-style duration string (``1h30m``, ``1.5h``, ``90m``) to seconds."""
    sign = Decimal(1)
    rest = text
    if rest[:1] in "+-":
        sign = Decimal(-1) if rest[0] == "-" else Decimal(1)
        rest = rest[1:]

    if rest == "0":
        return Decimal(0)

    total = Decimal(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None:
            raise ValidationError(f"failed to parse duration string: {text}")
        total += Decimal(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()

    if pos == 0:
        raise ValidationError(f"failed to parse duration string: {text}")
    return sign * total


def parse_duration(text: str) -> int:
    """
    Parse a duration into whole minutes, truncating any remainder.
    An empty string means no duration (0); anything shorter than a minute is rejected.
    """
    text = (text or "").strip()
    if not text:
        return 0

    seconds = _parse_seconds(text)
    minutes = seconds / 60
    if minutes < 1:
        raise ValidationError(f"duration needs to be at least 1 minute not: {minutes:f} minute(s)")
    return int(minutes)


def is_valid_image(path: str) -> bool:
    """True when the file extension is an allowed image format."""
    parts = Path(path).name.split(".")
    if len(parts) < 2:
        raise ValidationError(f"file doesn't have an extension: {path}")
    return parts[-1].lower() in VALID_IMAGE_FORMATS


def validate_profile_picture(path: str) -> str:
    picture = Path(path)
    if not picture.is_file():
        raise ValidationError(f"Profile picture file path is not valid: {path}")
    if not is_valid_image(path):
        raise ValidationError(
            f"Invalid profile picture file, valid formats are: {', '.join(VALID_IMAGE_FORMATS)}"
        )
    return path


def build_intent(
    message: str = "",
    emoji: str = "",
    duration: str = "",
    away: bool = False,
    dnd: bool = False,
    group: str = "",
    workspace: str = "",
    profile_picture: Optional[str] = None,
) -> StatusIntent:
    minutes = parse_duration(duration)
    if dnd and minutes == 0:
        raise ValidationError("do not disturb requires a duration")

    picture = validate_profile_picture(profile_picture) if profile_picture else None

    return StatusIntent(
        message=message or "",
        emoji=emoji or "",
        duration=minutes,
        away=away,
        dnd=dnd,
        group=group or "",
        workspace=workspace or "",
        profile_picture=picture,
    )
