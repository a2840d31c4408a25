"""Langkah sekunder (pembukuan, modal, stok, riwayat) yang dijalankan best effort.

Kegagalan langkah sekunder tidak membatalkan transaksi utama. Langkah yang
gagal dicatat ke tabel ``pending_effects`` dan bisa dijalankan ulang lewat
``flask retry-pending-effects``.
"""
import json
import logging
from datetime import datetime

from showroom import store
from showroom.errors import StoreError

logger = logging.getLogger(__name__)


class Result:
    def __init__(self, data=None, message="", warnings=None):
        self.data = data
        self.message = message
        self.warnings = list(warnings or [])

    def to_json(self):
        return {
            "success": True,
            "message": self.message,
            "warnings": self.warnings,
            "data": self.data,
        }


class SecondarySteps:
    def __init__(self, routine):
        self.routine = routine
        self.warnings = []
        self.failed = []

    def run(self, label, op):
        try:
            store.execute(op)
        except StoreError as exc:
            logger.warning("%s: %s gagal (%s)", self.routine, label, exc.message)
            self.warnings.append(f"{label} gagal dan dicatat untuk dicoba ulang.")
            self.failed.append(label)
            self._park(label, op, exc)
            return False
        return True

    def insert(self, label, table, values):
        return self.run(label, store.operation("insert", table=table, values=values))

    def update(self, label, table, patch, **filters):
        return self.run(label, store.operation("update", table=table, values=patch, filters=filters))

    def delete(self, label, table, **filters):
        return self.run(label, store.operation("delete", table=table, filters=filters))

    def call(self, label, procedure, **args):
        return self.run(label, store.operation("call", procedure=procedure, args=args))

    def _park(self, label, op, exc):
        try:
            store.insert(
                "pending_effects",
                {
                    "routine": self.routine,
                    "label": label,
                    "operation": store.dump_operation(op),
                    "error": exc.message,
                    "status": "pending",
                },
            )
        except StoreError:
            logger.exception("Gagal mencatat langkah tertunda %s", label)
            self.warnings.append(f"{label} juga gagal dicatat, perlu rekonsiliasi manual.")

    def result(self, data=None, message=""):
        return Result(data=data, message=message, warnings=self.warnings)


def retry_pending(limit=None):
    """Jalankan ulang langkah tertunda sesuai urutan dibuat. Return (berhasil, gagal)."""
    pending = store.select("pending_effects", status="pending")
    if limit:
        pending = pending[:limit]

    done = failed = 0
    for effect in pending:
        effect_id = effect.id
        attempts = (effect.attempts or 0) + 1
        op = json.loads(effect.operation)
        try:
            store.execute(op)
        except StoreError as exc:
            failed += 1
            logger.warning("Langkah tertunda #%s masih gagal: %s", effect_id, exc.message)
            store.update(
                "pending_effects",
                {"attempts": attempts, "error": exc.message},
                id=effect_id,
            )
            continue
        done += 1
        store.update(
            "pending_effects",
            {"attempts": attempts, "status": "done", "resolved_at": datetime.utcnow()},
            id=effect_id,
        )
    return done, failed
