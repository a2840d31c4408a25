
import pandas as pd
from sqlalchemy import func, select

from showroom import db, store
from showroom.errors import ValidationError
from showroom.money import rupiah
from showroom.models import Company, Pembukuan
from showroom.outbox import SecondarySteps
from showroom.time_utils import format_tanggal, local_today, parse_tanggal


JENIS_PEMBUKUAN = (
    "pembelian",
    "penjualan",
    "cicilan",
    "update_harga",
    "qc",
    "dp_batal",
    "biro_jasa",
    "modal",
)


def post_entry(
    steps,
    *,
    tanggal,
    company_id,
    keterangan,
    jenis,
    debit=0,
    kredit=0,
    divisi=None,
    cabang_id=None,
    pembelian_id=None,
    penjualan_id=None,
):
    """Catat satu baris pembukuan. Kredit = uang masuk, debit = uang keluar."""
    if not debit and not kredit:
        return False
    return steps.insert(
        "Pencatatan pembukuan",
        "pembukuan",
        {
            "tanggal": tanggal,
            "divisi": divisi,
            "cabang_id": cabang_id,
            "company_id": company_id,
            "pembelian_id": pembelian_id,
            "penjualan_id": penjualan_id,
            "jenis": jenis,
            "keterangan": keterangan,
            "debit": int(debit or 0),
            "kredit": int(kredit or 0),
        },
    )


def adjust_capital(steps, company_id, amount):
    if not amount:
        return False
    return steps.call(
        "Update modal perusahaan",
        "update_company_modal",
        company_id=company_id,
        amount=int(amount),
    )


def reduce_company_modal(company_id, jumlah, keterangan, tanggal=None):
    company = store.require("companies", company_id, "Perusahaan")
    jumlah = int(jumlah or 0)
    keterangan = (keterangan or "").strip()
    if jumlah <= 0:
        raise ValidationError("Jumlah pengurangan harus lebih dari 0.")
    if jumlah > (company.modal or 0):
        raise ValidationError(
            f"Pengurangan modal melebihi modal tersedia ({rupiah(company.modal)})."
        )
    if not keterangan:
        raise ValidationError("Keterangan pengurangan modal wajib diisi.")
    tanggal = parse_tanggal(tanggal) if tanggal else local_today()

    store.call("update_company_modal", company_id=company.id, amount=-jumlah)

    steps = SecondarySteps("modal.pengurangan")
    steps.insert(
        "Riwayat modal",
        "modal_history",
        {
            "company_id": company.id,
            "jumlah": -jumlah,
            "keterangan": f"Pengurangan Modal: {keterangan}",
            "tanggal": tanggal,
        },
    )
    company = store.get("companies", company.id)
    return steps.result(
        data={"company_id": company.id, "modal": company.modal},
        message="Modal berhasil dikurangi.",
    )


def _filtered(filters):
    stmt = select(Pembukuan)
    if filters.get("start"):
        stmt = stmt.where(Pembukuan.tanggal >= parse_tanggal(filters["start"]))
    if filters.get("end"):
        stmt = stmt.where(Pembukuan.tanggal <= parse_tanggal(filters["end"]))
    for key in ("divisi", "cabang_id", "company_id", "jenis", "pembelian_id", "penjualan_id"):
        if filters.get(key) not in (None, ""):
            stmt = stmt.where(getattr(Pembukuan, key) == filters[key])
    search = (filters.get("search") or "").strip()
    if search:
        stmt = stmt.where(Pembukuan.keterangan.ilike(f"%{search}%"))
    return stmt


def summarize(filters=None):
    sub = _filtered(filters or {}).subquery()
    total_debit, total_kredit = db.session.execute(
        select(
            func.coalesce(func.sum(sub.c.debit), 0),
            func.coalesce(func.sum(sub.c.kredit), 0),
        )
    ).one()
    return {
        "total_debit": int(total_debit),
        "total_kredit": int(total_kredit),
        "saldo": int(total_kredit) - int(total_debit),
    }


def query_pembukuan(filters=None, page=1, per_page=25):
    filters = filters or {}
    stmt = _filtered(filters).order_by(Pembukuan.tanggal.desc(), Pembukuan.id.desc())
    pagination = db.paginate(stmt, page=page, per_page=per_page, error_out=False)
    return {
        "items": pagination.items,
        "page": pagination.page,
        "pages": pagination.pages,
        "total": pagination.total,
        "summary": summarize(filters),
    }


def all_pembukuan(filters=None):
    stmt = _filtered(filters or {}).order_by(Pembukuan.tanggal.asc(), Pembukuan.id.asc())
    return list(db.session.scalars(stmt))


def pembukuan_frame(rows):
    company_names = dict(db.session.execute(select(Company.id, Company.nama_perusahaan)).all())
    data = [
        {
            "Tanggal": format_tanggal(row.tanggal),
            "Divisi": row.divisi or "",
            "Perusahaan": company_names.get(row.company_id, ""),
            "Jenis": row.jenis,
            "Keterangan": row.keterangan,
            "Debit": int(row.debit or 0),
            "Kredit": int(row.kredit or 0),
        }
        for row in rows
    ]
    df = pd.DataFrame(
        data,
        columns=["Tanggal", "Divisi", "Perusahaan", "Jenis", "Keterangan", "Debit", "Kredit"],
    )
    total = pd.DataFrame(
        [{"Keterangan": "TOTAL", "Debit": int(df["Debit"].sum()), "Kredit": int(df["Kredit"].sum())}]
    )
    return pd.concat([df, total], ignore_index=True)
