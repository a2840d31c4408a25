"""Status pembelian, penjualan dan biro jasa beserta perpindahan yang sah.

Nilai enum sama persis dengan string yang disimpan di database, jadi
``StatusPenjualan.SELESAI == "selesai"`` tetap benar.
"""
from enum import Enum

from .errors import InvalidTransition, ValidationError


class _StrStatus(str, Enum):
    def __str__(self):
        return self.value


class StatusPembelian(_StrStatus):
    READY = "ready"
    BOOKED = "booked"
    SOLD = "sold"


class StatusPenjualan(_StrStatus):
    BOOKED = "booked"
    SELESAI = "selesai"
    PENDING = "pending"
    CANCELLED_DP_HANGUS = "cancelled_dp_hangus"

    @property
    def label(self):
        return _PENJUALAN_LABELS[self]

    @classmethod
    def parse(cls, value):
        """Terima nilai database ('selesai') maupun label form ('Sold')."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip()
        for status, label in _PENJUALAN_LABELS.items():
            if text == status.value or text.lower() == label.lower():
                return status
        raise ValidationError(f"Status penjualan tidak dikenal: {text or '-'}")


_PENJUALAN_LABELS = {
    StatusPenjualan.BOOKED: "Booked",
    StatusPenjualan.SELESAI: "Sold",
    StatusPenjualan.PENDING: "Pending",
    StatusPenjualan.CANCELLED_DP_HANGUS: "Cancelled",
}


class StatusBiroJasa(_StrStatus):
    DALAM_PROSES = "Dalam Proses"
    SELESAI = "Selesai"
    BATAL = "Batal"


_TRANSITIONS = {
    StatusPembelian: {
        StatusPembelian.READY: {StatusPembelian.BOOKED, StatusPembelian.SOLD},
        StatusPembelian.BOOKED: {StatusPembelian.SOLD, StatusPembelian.READY},
        StatusPembelian.SOLD: {StatusPembelian.READY},
    },
    StatusPenjualan: {
        StatusPenjualan.BOOKED: {
            StatusPenjualan.SELESAI,
            StatusPenjualan.PENDING,
            StatusPenjualan.CANCELLED_DP_HANGUS,
        },
        StatusPenjualan.PENDING: {
            StatusPenjualan.BOOKED,
            StatusPenjualan.SELESAI,
            StatusPenjualan.CANCELLED_DP_HANGUS,
        },
        StatusPenjualan.SELESAI: set(),
        StatusPenjualan.CANCELLED_DP_HANGUS: set(),
    },
    StatusBiroJasa: {
        StatusBiroJasa.DALAM_PROSES: {StatusBiroJasa.SELESAI, StatusBiroJasa.BATAL},
        StatusBiroJasa.SELESAI: set(),
        StatusBiroJasa.BATAL: set(),
    },
}

# status penjualan yang masih boleh diedit lewat form edit
PENJUALAN_EDITABLE = {StatusPenjualan.BOOKED, StatusPenjualan.PENDING}


def transition(current, target):
    """Kembalikan status tujuan bila perpindahan sah, selain itu InvalidTransition.

    Perpindahan ke status yang sama selalu diterima.
    """
    enum_cls = type(target)
    current = enum_cls(current)
    if current == target:
        return target
    if target not in _TRANSITIONS[enum_cls][current]:
        raise InvalidTransition(
            f"Status tidak bisa diubah dari '{current.value}' ke '{target.value}'."
        )
    return target


def can_transition(current, target):
    try:
        transition(current, target)
    except InvalidTransition:
        return False
    return True
