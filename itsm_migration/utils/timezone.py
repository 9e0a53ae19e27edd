from datetime import timezone, tzinfo

from dateutil import tz

# Shared UTC timezone constant for consistent timestamp handling across the app
UTC = timezone.utc


def resolve_timezone(name: str | None) -> tzinfo:
    """Return the tzinfo for an IANA name, falling back to UTC for unknown names."""
    if not name or name.upper() == "UTC":
        return UTC
    zone = tz.gettz(name)
    return zone if zone is not None else UTC


__all__ = ["UTC", "resolve_timezone"]
