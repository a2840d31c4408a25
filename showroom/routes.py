import logging
from datetime import date, datetime
from io import BytesIO

import pandas as pd
from flask import Blueprint, current_app, jsonify, make_response, request

from showroom import biro_jasa, db, ledger, pembelian, penjualan, price_revision, store
from showroom.errors import ShowroomError, StoreError, ValidationError
from showroom.forms import (
    BatalForm,
    BiroJasaBayarForm,
    BiroJasaForm,
    BookedUpdateHargaForm,
    CicilanForm,
    DpCancellationForm,
    KeuntunganForm,
    ModalReductionForm,
    PembelianEditForm,
    PembelianForm,
    PenjualanEditForm,
    PenjualanForm,
    QcForm,
    SoldUpdateHargaForm,
    UpdateHargaPembelianForm,
    VendorDpForm,
)
from showroom.outbox import retry_pending
from showroom.status import StatusPenjualan
from showroom.time_utils import local_today, to_iso

bp = Blueprint("main", __name__)
logger = logging.getLogger(__name__)


def _parse_int_param(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _serialize(row):
    data = {}
    for key, value in store.as_dict(row).items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, date):
            value = to_iso(value)
        data[key] = value
    if row.__tablename__ == "penjualans":
        data["status_label"] = StatusPenjualan(row.status).label
    return data


def _form_payload(form_cls):
    form = form_cls()
    if not form.validate_on_submit():
        raise ValidationError(form.error_message())
    return form.payload()


def _respond(action, handler):
    """Jalankan handler dan bungkus hasilnya jadi JSON {success, message, warnings, data}."""
    try:
        result = handler()
    except StoreError as exc:
        db.session.rollback()
        logger.exception("Gagal %s", action)
        return jsonify({"success": False, "message": exc.message, "warnings": []}), exc.status_code
    except ShowroomError as exc:
        return jsonify({"success": False, "message": exc.message, "warnings": []}), exc.status_code
    except Exception as exc:
        db.session.rollback()
        logger.exception("Gagal %s", action)
        return jsonify({"success": False, "message": f"Error: {str(exc)}", "warnings": []}), 500
    return jsonify(result.to_json()), 200


# --- master data --------------------------------------------------------------

@bp.route("/api/companies", methods=["GET"])
def list_companies():
    return jsonify({"success": True, "data": [_serialize(c) for c in store.select("companies")]})


@bp.route("/api/companies/<int:company_id>/kurangi-modal", methods=["POST"])
def kurangi_modal(company_id):
    def handler():
        data = _form_payload(ModalReductionForm)
        return ledger.reduce_company_modal(
            company_id, data.get("jumlah"), data.get("keterangan"), data.get("tanggal")
        )

    return _respond("mengurangi modal", handler)


# --- pembelian ----------------------------------------------------------------

@bp.route("/api/pembelian", methods=["GET"])
def list_pembelian():
    filters = {}
    if request.args.get("status"):
        filters["status"] = request.args["status"]
    if _parse_int_param(request.args.get("jenis_motor_id")):
        filters["jenis_motor_id"] = int(request.args["jenis_motor_id"])
    rows = store.select("pembelian", **filters)
    return jsonify({"success": True, "data": [_serialize(row) for row in rows]})


@bp.route("/api/pembelian", methods=["POST"])
def create_pembelian():
    return _respond(
        "menyimpan pembelian",
        lambda: pembelian.create_pembelian(_form_payload(PembelianForm)),
    )


@bp.route("/api/pembelian/<int:pembelian_id>", methods=["PUT"])
def update_pembelian(pembelian_id):
    return _respond(
        "mengubah pembelian",
        lambda: pembelian.update_pembelian(pembelian_id, _form_payload(PembelianEditForm)),
    )


@bp.route("/api/pembelian/<int:pembelian_id>", methods=["DELETE"])
def delete_pembelian(pembelian_id):
    return _respond("menghapus pembelian", lambda: pembelian.delete_pembelian(pembelian_id))


@bp.route("/api/pembelian/<int:pembelian_id>/update-harga", methods=["POST"])
def update_harga_pembelian(pembelian_id):
    return _respond(
        "update harga pembelian",
        lambda: price_revision.update_harga_pembelian(pembelian_id, _form_payload(UpdateHargaPembelianForm)),
    )


@bp.route("/api/pembelian/<int:pembelian_id>/qc", methods=["POST"])
def qc_pembelian(pembelian_id):
    return _respond(
        "menyimpan QC",
        lambda: price_revision.record_qc(pembelian_id, _form_payload(QcForm)),
    )


@bp.route("/api/pembelian/<int:pembelian_id>/riwayat-harga", methods=["GET"])
def riwayat_harga_pembelian(pembelian_id):
    rows = store.select("price_histories_pembelian", pembelian_id=pembelian_id)
    return jsonify({"success": True, "data": [_serialize(row) for row in rows]})


# --- penjualan ----------------------------------------------------------------

@bp.route("/api/penjualan", methods=["GET"])
def list_penjualan():
    filters = {}
    if request.args.get("status"):
        try:
            filters["status"] = StatusPenjualan.parse(request.args["status"]).value
        except ValidationError as exc:
            return jsonify({"success": False, "message": exc.message}), 400
    rows = store.select("penjualans", **filters)
    return jsonify({"success": True, "data": [_serialize(row) for row in rows]})


@bp.route("/api/penjualan", methods=["POST"])
def create_penjualan():
    return _respond(
        "menyimpan penjualan",
        lambda: penjualan.create_penjualan(_form_payload(PenjualanForm)),
    )


@bp.route("/api/penjualan/<int:penjualan_id>", methods=["PUT"])
def update_penjualan(penjualan_id):
    return _respond(
        "mengubah penjualan",
        lambda: penjualan.update_penjualan(penjualan_id, _form_payload(PenjualanEditForm)),
    )


@bp.route("/api/penjualan/<int:penjualan_id>", methods=["DELETE"])
def delete_penjualan(penjualan_id):
    return _respond("menghapus penjualan", lambda: penjualan.delete_penjualan(penjualan_id))


@bp.route("/api/penjualan/<int:penjualan_id>/batal-dp", methods=["POST"])
def batal_dp(penjualan_id):
    return _respond(
        "membatalkan DP",
        lambda: penjualan.cancel_dp(penjualan_id, _form_payload(DpCancellationForm)),
    )


@bp.route("/api/penjualan/<int:penjualan_id>/update-harga-sold", methods=["POST"])
def update_harga_sold(penjualan_id):
    return _respond(
        "update harga unit terjual",
        lambda: penjualan.adjust_sold_unit(penjualan_id, _form_payload(SoldUpdateHargaForm)),
    )


@bp.route("/api/penjualan/<int:penjualan_id>/update-harga-booked", methods=["POST"])
def update_harga_booked(penjualan_id):
    return _respond(
        "update harga booked",
        lambda: price_revision.update_harga_booked(penjualan_id, _form_payload(BookedUpdateHargaForm)),
    )


@bp.route("/api/penjualan/<int:penjualan_id>/cicilan", methods=["GET"])
def list_cicilan(penjualan_id):
    rows = store.select("cicilan", order_by="batch_ke", penjualan_id=penjualan_id)
    return jsonify({"success": True, "data": [_serialize(row) for row in rows]})


@bp.route("/api/penjualan/<int:penjualan_id>/cicilan", methods=["POST"])
def bayar_cicilan(penjualan_id):
    return _respond(
        "menyimpan cicilan",
        lambda: penjualan.bayar_cicilan(penjualan_id, _form_payload(CicilanForm)),
    )


# --- biro jasa ----------------------------------------------------------------

@bp.route("/api/biro-jasa", methods=["GET"])
def list_biro_jasa():
    filters = {}
    if request.args.get("status"):
        filters["status"] = request.args["status"]
    rows = store.select("biro_jasa", **filters)
    return jsonify({"success": True, "data": [_serialize(row) for row in rows]})


@bp.route("/api/biro-jasa", methods=["POST"])
def create_biro_jasa():
    return _respond(
        "menyimpan biro jasa",
        lambda: biro_jasa.create_biro_jasa(_form_payload(BiroJasaForm)),
    )


@bp.route("/api/biro-jasa/<int:biro_jasa_id>/dp-vendor", methods=["POST"])
def dp_vendor_biro_jasa(biro_jasa_id):
    return _respond(
        "menyimpan DP vendor",
        lambda: biro_jasa.input_dp_vendor(biro_jasa_id, _form_payload(VendorDpForm)),
    )


@bp.route("/api/biro-jasa/<int:biro_jasa_id>/cicilan", methods=["POST"])
def bayar_biro_jasa(biro_jasa_id):
    return _respond(
        "menyimpan pembayaran biro jasa",
        lambda: biro_jasa.bayar_biro_jasa(biro_jasa_id, _form_payload(BiroJasaBayarForm)),
    )


@bp.route("/api/biro-jasa/<int:biro_jasa_id>/keuntungan", methods=["POST"])
def keuntungan_biro_jasa(biro_jasa_id):
    return _respond(
        "menyimpan keuntungan biro jasa",
        lambda: biro_jasa.catat_keuntungan(biro_jasa_id, _form_payload(KeuntunganForm)),
    )


@bp.route("/api/biro-jasa/<int:biro_jasa_id>/batal", methods=["POST"])
def batal_biro_jasa(biro_jasa_id):
    return _respond(
        "membatalkan biro jasa",
        lambda: biro_jasa.batal_biro_jasa(biro_jasa_id, _form_payload(BatalForm)),
    )


# --- pembukuan ----------------------------------------------------------------

def _pembukuan_filters():
    return {
        "start": request.args.get("start"),
        "end": request.args.get("end"),
        "divisi": request.args.get("divisi"),
        "cabang_id": _parse_int_param(request.args.get("cabang_id")),
        "company_id": _parse_int_param(request.args.get("company_id")),
        "jenis": request.args.get("jenis"),
        "search": request.args.get("search"),
    }


@bp.route("/api/pembukuan", methods=["GET"])
def list_pembukuan():
    page = _parse_int_param(request.args.get("page")) or 1
    per_page = _parse_int_param(request.args.get("per_page")) or current_app.config["PEMBUKUAN_PER_PAGE"]
    try:
        result = ledger.query_pembukuan(_pembukuan_filters(), page=page, per_page=per_page)
    except ValueError as exc:
        return jsonify({"success": False, "message": str(exc)}), 400
    return jsonify(
        {
            "success": True,
            "data": [_serialize(row) for row in result["items"]],
            "page": result["page"],
            "pages": result["pages"],
            "total": result["total"],
            "summary": result["summary"],
        }
    )


@bp.route("/pembukuan/export", methods=["GET"])
def export_pembukuan():
    try:
        rows = ledger.all_pembukuan(_pembukuan_filters())
    except ValueError as exc:
        return jsonify({"success": False, "message": str(exc)}), 400
    df = ledger.pembukuan_frame(rows)

    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Pembukuan")
    output.seek(0)

    response = make_response(output.read())
    response.headers["Content-Disposition"] = (
        f"attachment; filename=pembukuan_{to_iso(local_today())}.xlsx"
    )
    response.headers["Content-Type"] = (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    return response


# --- langkah tertunda ---------------------------------------------------------

@bp.route("/api/pending-effects", methods=["GET"])
def list_pending_effects():
    status = request.args.get("status", "pending")
    rows = store.select("pending_effects", status=status)
    return jsonify({"success": True, "data": [_serialize(row) for row in rows]})


@bp.route("/api/pending-effects/retry", methods=["POST"])
def retry_pending_effects():
    done, failed = retry_pending(limit=_parse_int_param(request.args.get("limit")))
    return jsonify(
        {
            "success": failed == 0,
            "message": f"Berhasil: {done}, masih gagal: {failed}",
            "warnings": [],
            "data": {"done": done, "failed": failed},
        }
    )
