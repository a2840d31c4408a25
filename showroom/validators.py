from showroom.errors import ValidationError
from showroom.money import parse_rupiah
from showroom.time_utils import local_today, parse_tanggal


def amount(data, key, label, minimum=0, required=False):
    raw = data.get(key)
    try:
        value = parse_rupiah(raw)
    except ValueError as exc:
        raise ValidationError(f"{label}: {exc}") from exc
    if value is None:
        if required:
            raise ValidationError(f"{label} wajib diisi.")
        value = 0
    if value < minimum:
        if minimum == 1:
            raise ValidationError(f"{label} harus lebih dari 0.")
        raise ValidationError(f"{label} tidak boleh kurang dari {minimum}.")
    return value


def text(data, key, label=None):
    """Teks yang sudah di-strip. Jika label diisi, field wajib."""
    value = str(data.get(key) or "").strip()
    if label and not value:
        raise ValidationError(f"{label} wajib diisi.")
    return value


def optional_int(data, key):
    raw = data.get(key)
    if raw in (None, "", 0, "0"):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Nilai {key} tidak valid.") from None


def tanggal(data, key, label="Tanggal", default_today=True):
    raw = data.get(key)
    if raw in (None, ""):
        if default_today:
            return local_today()
        raise ValidationError(f"{label} wajib diisi.")
    try:
        return parse_tanggal(raw)
    except ValueError as exc:
        raise ValidationError(f"{label}: {exc}") from exc
