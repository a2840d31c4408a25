"""Akses tabel per panggilan.

Setiap fungsi tulis di sini commit sendiri-sendiri: satu panggilan, satu
transaksi. Kegagalan database selalu di-rollback lalu dinaikkan sebagai
``StoreError`` supaya pemanggil bisa membedakan langkah utama dan sekunder.
"""
import json
import logging
from contextlib import contextmanager
from datetime import date, datetime

from sqlalchemy import Date, delete as sa_delete, func, select as sa_select, update as sa_update
from sqlalchemy.exc import SQLAlchemyError

from showroom import db
from showroom.errors import NotFoundError, StoreError
from showroom.models import (
    BiroJasa,
    BiroJasaCicilan,
    Brand,
    Cabang,
    Cicilan,
    Company,
    JenisMotor,
    ModalHistory,
    Pembelian,
    Pembukuan,
    PendingEffect,
    Penjualan,
    PriceHistory,
    PriceHistoryPembelian,
    QcHistory,
)
from showroom.time_utils import parse_tanggal

logger = logging.getLogger(__name__)

TABLES = {
    model.__tablename__: model
    for model in (
        Company,
        Cabang,
        Brand,
        JenisMotor,
        Pembelian,
        Penjualan,
        Pembukuan,
        PriceHistoryPembelian,
        PriceHistory,
        Cicilan,
        QcHistory,
        BiroJasa,
        BiroJasaCicilan,
        ModalHistory,
        PendingEffect,
    )
}


def _model(table):
    try:
        return TABLES[table]
    except KeyError:
        raise StoreError(f"Tabel tidak dikenal: {table}") from None


def _coerce(model, values):
    columns = model.__table__.columns
    clean = {}
    for key, value in values.items():
        if key not in columns:
            raise StoreError(f"Kolom '{key}' tidak ada di tabel {model.__tablename__}.")
        if isinstance(value, str) and isinstance(columns[key].type, Date):
            value = parse_tanggal(value)
        clean[key] = value
    return clean


def _where(model, filters):
    clauses = []
    for key, value in _coerce(model, filters).items():
        column = getattr(model, key)
        if isinstance(value, (list, tuple, set)):
            clauses.append(column.in_(list(value)))
        else:
            clauses.append(column == value)
    return clauses


@contextmanager
def _write(action):
    try:
        yield
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning("Gagal %s: %s", action, exc)
        raise StoreError(f"Gagal {action}.") from exc


# --- baca -------------------------------------------------------------------

def get(table, row_id):
    if row_id is None:
        return None
    return db.session.get(_model(table), row_id)


def require(table, row_id, label):
    """Seperti get, tapi NotFoundError jika baris tidak ada."""
    row = get(table, row_id)
    if row is None:
        raise NotFoundError(f"{label} tidak ditemukan.")
    return row


def select(table, order_by="id", **filters):
    model = _model(table)
    stmt = sa_select(model).where(*_where(model, filters)).order_by(getattr(model, order_by))
    return list(db.session.scalars(stmt))


def max_value(table, column, **filters):
    model = _model(table)
    stmt = sa_select(func.max(getattr(model, column))).where(*_where(model, filters))
    return db.session.scalar(stmt)


def as_dict(row):
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


# --- tulis ------------------------------------------------------------------

def insert(table, values):
    model = _model(table)
    row = model(**_coerce(model, values))
    with _write(f"menyimpan data {table}"):
        db.session.add(row)
    return row


def update(table, patch, **filters):
    if not filters:
        raise StoreError("Update tanpa filter tidak diizinkan.")
    model = _model(table)
    stmt = sa_update(model).where(*_where(model, filters)).values(**_coerce(model, patch))
    with _write(f"mengubah data {table}"):
        result = db.session.execute(stmt)
    return result.rowcount


def delete(table, **filters):
    if not filters:
        raise StoreError("Hapus tanpa filter tidak diizinkan.")
    model = _model(table)
    stmt = sa_delete(model).where(*_where(model, filters))
    with _write(f"menghapus data {table}"):
        result = db.session.execute(stmt)
    return result.rowcount


# --- prosedur atomik --------------------------------------------------------

def _update_company_modal(company_id, amount):
    result = db.session.execute(
        sa_update(Company)
        .where(Company.id == company_id)
        .values(modal=Company.modal + int(amount))
    )
    if result.rowcount == 0:
        raise StoreError(f"Perusahaan id={company_id} tidak ditemukan saat update modal.")


def _adjust_qty(jenis_motor_id, step):
    result = db.session.execute(
        sa_update(JenisMotor)
        .where(JenisMotor.id == jenis_motor_id)
        .values(qty=JenisMotor.qty + step)
    )
    if result.rowcount == 0:
        raise StoreError(f"Jenis motor id={jenis_motor_id} tidak ditemukan saat update stok.")


def _increment_qty(jenis_motor_id):
    _adjust_qty(jenis_motor_id, 1)


def _decrement_qty(jenis_motor_id):
    _adjust_qty(jenis_motor_id, -1)


PROCEDURES = {
    "update_company_modal": _update_company_modal,
    "increment_qty": _increment_qty,
    "decrement_qty": _decrement_qty,
}


def call(procedure, **args):
    func_ = PROCEDURES.get(procedure)
    if func_ is None:
        raise StoreError(f"Prosedur tidak dikenal: {procedure}")
    try:
        with _write(f"menjalankan {procedure}"):
            func_(**args)
    except StoreError:
        db.session.rollback()
        raise


# --- operasi tersimpan (outbox) ---------------------------------------------

def operation(action, table=None, values=None, filters=None, procedure=None, args=None):
    return {
        "action": action,
        "table": table,
        "values": values or {},
        "filters": filters or {},
        "procedure": procedure,
        "args": args or {},
    }


def _json_default(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Tidak bisa serialisasi {type(value).__name__}")


def dump_operation(op):
    return json.dumps(op, default=_json_default, sort_keys=True)


def execute(op):
    action = op.get("action")
    if action == "insert":
        return insert(op["table"], op["values"])
    if action == "update":
        return update(op["table"], op["values"], **op["filters"])
    if action == "delete":
        return delete(op["table"], **op["filters"])
    if action == "call":
        return call(op["procedure"], **op["args"])
    raise StoreError(f"Operasi tidak dikenal: {action}")
