import os
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_LOCAL_TZ = None

DISPLAY_FORMAT = "%d/%m/%Y"
ISO_FORMAT = "%Y-%m-%d"


def _resolve_local_tz():
    global _LOCAL_TZ
    if _LOCAL_TZ is not None:
        return _LOCAL_TZ
    tz_name = os.environ.get("APP_TIMEZONE") or os.environ.get("TZ")
    if tz_name:
        try:
            _LOCAL_TZ = ZoneInfo(tz_name)
            return _LOCAL_TZ
        except (ZoneInfoNotFoundError, ValueError):
            _LOCAL_TZ = None
    _LOCAL_TZ = datetime.now().astimezone().tzinfo
    return _LOCAL_TZ


def local_now():
    return datetime.now(_resolve_local_tz()).replace(tzinfo=None)


def local_today():
    return local_now().date()


def parse_tanggal(value):
    """Terima date, datetime, 'dd/mm/yyyy' atau 'yyyy-mm-dd'."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        raise ValueError("Tanggal wajib diisi.")
    for fmt in (DISPLAY_FORMAT, ISO_FORMAT):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Format tanggal tidak dikenali: {text}")


def format_tanggal(value):
    if value is None:
        return ""
    return value.strftime(DISPLAY_FORMAT)


def to_iso(value):
    if value is None:
        return None
    return value.strftime(ISO_FORMAT)
