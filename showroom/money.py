"""Nominal rupiah: selalu bilangan bulat, format ribuan pakai titik."""


def parse_rupiah(raw_value):
    """'Rp 12.000.000' / '12,000,000' / 12000000 -> 12000000. Kosong -> None."""
    if raw_value in (None, "", "null"):
        return None
    if isinstance(raw_value, bool):
        raise ValueError("Nominal tidak valid.")
    if isinstance(raw_value, int):
        return raw_value
    if isinstance(raw_value, float):
        if not raw_value.is_integer():
            raise ValueError("Nominal rupiah tidak boleh pecahan.")
        return int(raw_value)
    value = str(raw_value).strip()
    if not value:
        return None
    cleaned = value.replace("Rp", "").replace("rp", "").replace(" ", "")
    negative = cleaned.startswith("-")
    cleaned = cleaned.lstrip("-")
    # ",00" di belakang dianggap sen kosong
    if "," in cleaned and cleaned.rsplit(",", 1)[1] in ("0", "00"):
        cleaned = cleaned.rsplit(",", 1)[0]
    digits = cleaned.replace(".", "").replace(",", "")
    if not digits.isdigit():
        raise ValueError(f"Nominal tidak valid: {value}")
    amount = int(digits)
    return -amount if negative else amount


def rupiah(value):
    return "Rp " + "{:,.0f}".format(value or 0).replace(",", ".")
