"""Siklus penjualan: buat, edit, hapus, batal DP, cicilan dan update harga unit terjual."""
import logging

from showroom import store
from showroom import validators as v
from showroom.errors import InvalidTransition, ValidationError
from showroom.inventory import check_unit, describe_unit, mark_unit, release_unit, reserve_unit
from showroom.ledger import adjust_capital, post_entry
from showroom.money import rupiah
from showroom.outbox import SecondarySteps
from showroom.status import (
    PENJUALAN_EDITABLE,
    StatusPembelian,
    StatusPenjualan,
    transition,
)

logger = logging.getLogger(__name__)

CASH_PENUH = "cash_penuh"
JENIS_PEMBAYARAN = (CASH_PENUH, "cash_bertahap", "kredit")

FULL_FORFEIT = "full_forfeit"
PARTIAL_REFUND = "partial_refund"

# pengurangan harga unit terjual dibatasi 80% dari harga beli
MAX_REDUCTION_RATIO = 0.8


def received_at_creation(values):
    """Uang yang diterima saat transaksi dibuat: harga bayar (cash penuh) atau DP."""
    if values["jenis_pembayaran"] == CASH_PENUH:
        return min(values["harga_bayar"] or 0, values["harga_jual"] or 0)
    return values["dp"] or 0


def creation_cash(values):
    """(nominal pembukuan, nominal modal) yang dibukukan saat penjualan dibuat.

    Ongkir subsidi dan titipan ikut masuk kas. Untuk cash bertahap/kredit yang
    langsung lunas, sisa setelah DP juga ditambahkan ke modal.
    """
    ongkir = (values["subsidi_ongkir"] or 0) + (values["titip_ongkir"] or 0)
    received = received_at_creation(values)
    ledger_amount = received + ongkir
    capital = ledger_amount
    if values["jenis_pembayaran"] != CASH_PENUH and values["status"] == StatusPenjualan.SELESAI:
        lunas = min(values["harga_bayar"] or 0, values["harga_jual"] or 0)
        capital += max(0, lunas - (values["dp"] or 0))
    return ledger_amount, capital


def _keterangan_kas(values, pembelian):
    brand, jenis, plat = describe_unit(pembelian)
    tt = " Tukar Tambah" if values.get("tukar_tambah") else ""
    if values["jenis_pembayaran"] == CASH_PENUH:
        return f"cash penuh{tt} dari {brand} - {jenis} - {plat}"
    return f"DP{tt} dari {brand} - {jenis} - {plat}"


def _post_creation_cash(steps, values, pembelian, penjualan_id):
    ledger_amount, capital = creation_cash(values)
    post_entry(
        steps,
        tanggal=values["tanggal"],
        divisi=values["divisi"],
        cabang_id=values["cabang_id"],
        company_id=values["company_id"],
        pembelian_id=pembelian.id,
        penjualan_id=penjualan_id,
        kredit=ledger_amount,
        keterangan=_keterangan_kas(values, pembelian),
        jenis="penjualan",
    )
    return capital


def _payment_values(data, harga_jual, requested_status):
    """Hitung dp, harga_bayar, sisa_bayar dan status dari input pembayaran."""
    jenis_pembayaran = v.text(data, "jenis_pembayaran") or CASH_PENUH
    if jenis_pembayaran not in JENIS_PEMBAYARAN:
        raise ValidationError(f"Jenis pembayaran tidak dikenal: {jenis_pembayaran}")

    if jenis_pembayaran == CASH_PENUH:
        dp = 0
        harga_bayar = v.amount(data, "harga_bayar", "Harga bayar")
        if data.get("harga_bayar") in (None, ""):
            harga_bayar = harga_jual
        if harga_bayar <= 0:
            raise ValidationError("Harga bayar harus lebih dari 0.")
    else:
        dp = v.amount(data, "dp", "DP", minimum=1, required=True)
        if dp > harga_jual:
            raise ValidationError("DP tidak boleh melebihi harga jual.")
        harga_bayar = v.amount(data, "harga_bayar", "Harga bayar") or dp
        if harga_bayar < dp:
            raise ValidationError("Harga bayar tidak boleh kurang dari DP.")

    sisa_bayar = max(0, harga_jual - harga_bayar)
    if harga_bayar >= harga_jual or sisa_bayar == 0:
        status = StatusPenjualan.SELESAI
    else:
        status = requested_status or StatusPenjualan.BOOKED
        if status == StatusPenjualan.SELESAI:
            # tidak boleh selesai jika masih ada sisa
            status = StatusPenjualan.BOOKED
    return {
        "jenis_pembayaran": jenis_pembayaran,
        "dp": dp,
        "harga_bayar": harga_bayar,
        "sisa_bayar": sisa_bayar,
        "status": status,
    }


def _paid_by_cicilan(penjualan_id):
    return sum(c.jumlah_bayar or 0 for c in store.select("cicilan", penjualan_id=penjualan_id))


def _requested_status(data):
    if data.get("status") in (None, ""):
        return None
    status = StatusPenjualan.parse(data["status"])
    if status == StatusPenjualan.CANCELLED_DP_HANGUS:
        raise ValidationError("Gunakan menu batal DP untuk membatalkan penjualan.")
    return status


def _unit_target(status):
    return StatusPembelian.SOLD if status == StatusPenjualan.SELESAI else StatusPembelian.BOOKED


def create_penjualan(data):
    pembelian = store.require("pembelian", v.optional_int(data, "pembelian_id"), "Data pembelian")
    if pembelian.status != StatusPembelian.READY:
        raise ValidationError(f"Unit {pembelian.plat_nomor} tidak tersedia (status {pembelian.status}).")
    company = store.require("companies", v.optional_int(data, "company_id"), "Perusahaan penerima")
    tanggal = v.tanggal(data, "tanggal", "Tanggal penjualan", default_today=False)
    nama_pembeli = v.text(data, "nama_pembeli", "Nama pembeli")
    harga_jual = v.amount(data, "harga_jual", "Harga jual", minimum=1, required=True)
    payment = _payment_values(data, harga_jual, _requested_status(data))
    target = _unit_target(payment["status"])
    check_unit(pembelian, target)

    harga_beli = pembelian.cost_basis
    values = {
        "tanggal": tanggal,
        "divisi": v.text(data, "divisi") or pembelian.divisi,
        "cabang_id": v.optional_int(data, "cabang_id") or pembelian.cabang_id,
        "brand_id": pembelian.brand_id,
        "jenis_id": pembelian.jenis_motor_id,
        "pembelian_id": pembelian.id,
        "plat": pembelian.plat_nomor,
        "tahun": pembelian.tahun,
        "kilometer": pembelian.kilometer,
        "warna": pembelian.warna,
        "nama_pembeli": nama_pembeli,
        "alamat_pembeli": v.text(data, "alamat_pembeli") or None,
        "no_telepon_pembeli": v.text(data, "no_telepon_pembeli") or None,
        "tukar_tambah": bool(data.get("tukar_tambah")),
        "company_id": company.id,
        "harga_jual": harga_jual,
        "harga_beli": harga_beli,
        "keuntungan": harga_jual - harga_beli,
        "subsidi_ongkir": v.amount(data, "subsidi_ongkir", "Subsidi ongkir"),
        "titip_ongkir": v.amount(data, "titip_ongkir", "Titip ongkir"),
        "catatan": v.text(data, "catatan") or None,
        **payment,
    }
    if values["status"] == StatusPenjualan.SELESAI:
        values["tanggal_lunas"] = tanggal
    values["status"] = values["status"].value
    penjualan = store.insert("penjualans", values)

    steps = SecondarySteps("penjualan.create")
    reserve_unit(steps, pembelian.id, pembelian.jenis_motor_id, target)
    capital = _post_creation_cash(steps, values, pembelian, penjualan.id)
    adjust_capital(steps, company.id, capital)

    logger.info("Penjualan %s disimpan (id=%s, status=%s)", pembelian.plat_nomor, penjualan.id, values["status"])
    return steps.result(
        data={"id": penjualan.id, "status": values["status"], "keuntungan": values["keuntungan"]},
        message="Penjualan berhasil disimpan!",
    )


def update_penjualan(penjualan_id, data):
    penjualan = store.require("penjualans", penjualan_id, "Data penjualan")
    old = store.as_dict(penjualan)
    old_status = StatusPenjualan(old["status"])
    if old_status not in PENJUALAN_EDITABLE:
        raise InvalidTransition(f"Penjualan berstatus {old_status.label} tidak bisa diedit.")

    # harga_bayar tersimpan sudah termasuk cicilan; hitung ulang dari posisi saat dibuat
    paid_cicilan = _paid_by_cicilan(penjualan_id)
    at_creation = {**old, "harga_bayar": (old["harga_bayar"] or 0) - paid_cicilan}
    merged = {**at_creation, **{key: value for key, value in data.items() if value is not None}}
    if (
        data.get("dp") not in (None, "")
        and data.get("harga_bayar") in (None, "")
        and old["jenis_pembayaran"] != CASH_PENUH
        and (v.text(merged, "jenis_pembayaran") or CASH_PENUH) != CASH_PENUH
    ):
        # DP diganti: pembayaran lain saat transaksi dibuat tetap terbawa
        new_dp = v.amount(data, "dp", "DP", minimum=1, required=True)
        merged["harga_bayar"] = at_creation["harga_bayar"] - (old["dp"] or 0) + new_dp
    new_pembelian_id = v.optional_int(merged, "pembelian_id")
    unit_changed = new_pembelian_id != old["pembelian_id"]
    old_pembelian = store.require("pembelian", old["pembelian_id"], "Data pembelian lama")
    pembelian = old_pembelian
    if unit_changed:
        pembelian = store.require("pembelian", new_pembelian_id, "Data pembelian baru")
        if pembelian.status != StatusPembelian.READY:
            raise ValidationError(f"Unit {pembelian.plat_nomor} tidak tersedia (status {pembelian.status}).")

    company = store.require("companies", v.optional_int(merged, "company_id"), "Perusahaan penerima")
    company_changed = company.id != old["company_id"]
    tanggal = v.tanggal(merged, "tanggal", "Tanggal penjualan", default_today=False)
    harga_jual = v.amount(merged, "harga_jual", "Harga jual", minimum=1, required=True)
    requested = _requested_status(data) or old_status
    payment = _payment_values(merged, harga_jual, requested)
    creation_harga_bayar = payment["harga_bayar"]
    if paid_cicilan:
        payment["harga_bayar"] += paid_cicilan
        payment["sisa_bayar"] = max(0, harga_jual - payment["harga_bayar"])
        if payment["sisa_bayar"] == 0:
            payment["status"] = StatusPenjualan.SELESAI
    transition(old_status, payment["status"])
    target = _unit_target(payment["status"])
    if unit_changed:
        check_unit(pembelian, target)

    harga_beli = pembelian.cost_basis if unit_changed else old["harga_beli"]
    values = {
        "tanggal": tanggal,
        "divisi": v.text(merged, "divisi") or pembelian.divisi,
        "cabang_id": v.optional_int(merged, "cabang_id"),
        "nama_pembeli": v.text(merged, "nama_pembeli", "Nama pembeli"),
        "alamat_pembeli": v.text(merged, "alamat_pembeli") or None,
        "no_telepon_pembeli": v.text(merged, "no_telepon_pembeli") or None,
        "tukar_tambah": bool(merged.get("tukar_tambah")),
        "company_id": company.id,
        "harga_jual": harga_jual,
        "harga_beli": harga_beli,
        "keuntungan": harga_jual - harga_beli,
        "subsidi_ongkir": v.amount(merged, "subsidi_ongkir", "Subsidi ongkir"),
        "titip_ongkir": v.amount(merged, "titip_ongkir", "Titip ongkir"),
        "catatan": v.text(merged, "catatan") or None,
        **payment,
    }
    if unit_changed:
        values.update(
            {
                "pembelian_id": pembelian.id,
                "brand_id": pembelian.brand_id,
                "jenis_id": pembelian.jenis_motor_id,
                "plat": pembelian.plat_nomor,
                "tahun": pembelian.tahun,
                "kilometer": pembelian.kilometer,
                "warna": pembelian.warna,
            }
        )
    if values["status"] == StatusPenjualan.SELESAI and not old["tanggal_lunas"]:
        values["tanggal_lunas"] = tanggal
    values["status"] = values["status"].value
    store.update("penjualans", values, id=penjualan_id)

    steps = SecondarySteps("penjualan.update")
    steps.delete(
        "Hapus pembukuan penjualan lama",
        "pembukuan",
        penjualan_id=penjualan_id,
        jenis="penjualan",
    )

    _, old_capital = creation_cash(at_creation)
    if unit_changed and received_at_creation(at_creation) > 0:
        release_unit(steps, old_pembelian.id, old_pembelian.jenis_motor_id)
        reserve_unit(steps, pembelian.id, pembelian.jenis_motor_id, target)
    elif target == StatusPembelian.SOLD:
        mark_unit(steps, pembelian.id, target)

    new_capital = _post_creation_cash(
        steps, {**values, "harga_bayar": creation_harga_bayar}, pembelian, penjualan_id
    )
    if company_changed:
        adjust_capital(steps, old["company_id"], -old_capital)
        adjust_capital(steps, company.id, new_capital)
    else:
        adjust_capital(steps, company.id, new_capital - old_capital)

    if harga_jual != old["harga_jual"] or harga_beli != old["harga_beli"]:
        steps.insert(
            "Riwayat harga penjualan",
            "price_histories",
            {
                "penjualan_id": penjualan_id,
                "harga_jual_lama": old["harga_jual"],
                "harga_jual_baru": harga_jual,
                "harga_beli_lama": old["harga_beli"],
                "harga_beli_baru": harga_beli,
                "keuntungan_lama": old["keuntungan"],
                "keuntungan_baru": values["keuntungan"],
                "reason": "Edit penjualan",
                "company_id": company.id,
                "tanggal_update": tanggal,
            },
        )
    return steps.result(
        data={"id": penjualan_id, "status": values["status"], "keuntungan": values["keuntungan"]},
        message="Penjualan berhasil diperbarui!",
    )


def delete_penjualan(penjualan_id):
    penjualan = store.require("penjualans", penjualan_id, "Data penjualan")
    old = store.as_dict(penjualan)
    pembelian = store.get("pembelian", old["pembelian_id"])

    store.delete("cicilan", penjualan_id=penjualan_id)
    store.delete("price_histories", penjualan_id=penjualan_id)
    store.delete("penjualans", id=penjualan_id)

    steps = SecondarySteps("penjualan.delete")
    # harga beli dikembalikan, keuntungan yang sudah diakui ditarik
    adjust_capital(steps, old["company_id"], old["harga_beli"])
    if old["keuntungan"] > 0:
        adjust_capital(steps, old["company_id"], -old["keuntungan"])
    steps.delete(
        "Hapus pembukuan penjualan",
        "pembukuan",
        penjualan_id=penjualan_id,
        jenis=["penjualan", "cicilan"],
    )
    if pembelian is not None and old["status"] != StatusPenjualan.CANCELLED_DP_HANGUS:
        release_unit(steps, pembelian.id, pembelian.jenis_motor_id)
    return steps.result(data={"id": penjualan_id}, message="Penjualan berhasil dihapus.")


def cancel_dp(penjualan_id, data):
    """Batalkan penjualan yang baru DP: hangus penuh atau kembali sebagian."""
    penjualan = store.require("penjualans", penjualan_id, "Data penjualan")
    policy = v.text(data, "policy", "Jenis pembatalan")
    if policy not in (FULL_FORFEIT, PARTIAL_REFUND):
        raise ValidationError(f"Jenis pembatalan tidak dikenal: {policy}")
    reason = v.text(data, "reason", "Alasan pembatalan")
    transition(penjualan.status, StatusPenjualan.CANCELLED_DP_HANGUS)
    tanggal = v.tanggal(data, "tanggal")

    refund = 0
    company_id = penjualan.company_id
    if policy == PARTIAL_REFUND:
        refund = v.amount(data, "refund_amount", "Jumlah pengembalian", minimum=1, required=True)
        if refund > (penjualan.dp or 0):
            raise ValidationError(f"Pengembalian tidak boleh melebihi DP ({rupiah(penjualan.dp)}).")
        company_id = v.optional_int(data, "company_id") or company_id
        store.require("companies", company_id, "Sumber dana pengembalian")

    pembelian = store.require("pembelian", penjualan.pembelian_id, "Data pembelian")
    keterangan = v.text(data, "keterangan")
    catatan = f"{penjualan.catatan}\n" if penjualan.catatan else ""
    catatan += f"[DP CANCELLED] {reason}"
    if keterangan:
        catatan += f"\nKeterangan: {keterangan}"

    store.update(
        "penjualans",
        {
            "status": StatusPenjualan.CANCELLED_DP_HANGUS.value,
            "dp": 0,
            "harga_bayar": 0,
            "sisa_bayar": penjualan.harga_jual,
            "catatan": catatan,
        },
        id=penjualan_id,
    )

    steps = SecondarySteps("penjualan.cancel_dp")
    release_unit(steps, pembelian.id, pembelian.jenis_motor_id)
    if policy == PARTIAL_REFUND:
        brand, _, plat = describe_unit(pembelian)
        adjust_capital(steps, company_id, -refund)
        post_entry(
            steps,
            tanggal=tanggal,
            divisi=penjualan.divisi,
            cabang_id=penjualan.cabang_id,
            company_id=company_id,
            pembelian_id=pembelian.id,
            penjualan_id=penjualan_id,
            debit=refund,
            keterangan=f"Pengembalian DP ke Customer - {reason} ({brand} {plat})",
            jenis="dp_batal",
        )
        message = f"DP dibatalkan, {rupiah(refund)} dikembalikan ke customer."
    else:
        message = "DP dibatalkan dan hangus."
    return steps.result(data={"id": penjualan_id, "policy": policy}, message=message)


def adjust_sold_unit(penjualan_id, data):
    """Tambah/kurangi harga beli unit yang sudah terjual (status selesai)."""
    penjualan = store.require("penjualans", penjualan_id, "Data penjualan")
    if penjualan.status != StatusPenjualan.SELESAI:
        raise InvalidTransition("Update harga hanya bisa untuk unit yang sudah terjual (selesai).")
    jenis_update = v.text(data, "jenis_update") or "tambah"
    if jenis_update not in ("tambah", "kurang"):
        raise ValidationError("Jenis update harus 'tambah' atau 'kurang'.")
    nominal = v.amount(data, "nominal", "Nominal biaya", minimum=1, required=True)
    reason = v.text(data, "reason", "Alasan update harga")
    company_id = v.optional_int(data, "sumber_dana_id")
    if not company_id:
        raise ValidationError("Sumber dana wajib dipilih.")
    store.require("companies", company_id, "Sumber dana")
    tanggal = v.tanggal(data, "tanggal_update")

    harga_beli_lama = penjualan.harga_beli or 0
    if jenis_update == "kurang":
        if harga_beli_lama - nominal < 0:
            raise ValidationError("Pengurangan tidak boleh membuat harga beli negatif.")
        batas = int(harga_beli_lama * MAX_REDUCTION_RATIO)
        if nominal > batas:
            raise ValidationError(f"Pengurangan maksimal 80% dari harga beli ({rupiah(batas)}).")
    signed = nominal if jenis_update == "tambah" else -nominal
    harga_beli_baru = harga_beli_lama + signed
    keuntungan_lama = penjualan.keuntungan or 0
    keuntungan_baru = (penjualan.harga_jual or 0) - harga_beli_baru
    pembelian = store.require("pembelian", penjualan.pembelian_id, "Data pembelian")

    store.update(
        "penjualans",
        {
            "harga_beli": harga_beli_baru,
            "keuntungan": keuntungan_baru,
            "biaya_lain_lain": (penjualan.biaya_lain_lain or 0) + signed,
            "reason_update_harga": reason,
        },
        id=penjualan_id,
    )

    steps = SecondarySteps("penjualan.update_harga_sold")
    steps.update(
        "Update harga final",
        "pembelian",
        {"harga_final": pembelian.cost_basis + signed},
        id=pembelian.id,
    )
    adjust_capital(steps, company_id, -signed)
    judul = "Biaya Tambahan" if signed > 0 else "Pengurangan Biaya"
    post_entry(
        steps,
        tanggal=tanggal,
        divisi=penjualan.divisi,
        cabang_id=penjualan.cabang_id,
        company_id=company_id,
        pembelian_id=pembelian.id,
        penjualan_id=penjualan_id,
        debit=nominal if signed > 0 else 0,
        kredit=nominal if signed < 0 else 0,
        keterangan=f"{judul} - {pembelian.plat_nomor} - {reason}",
        jenis="update_harga",
    )
    steps.insert(
        "Riwayat harga penjualan",
        "price_histories",
        {
            "penjualan_id": penjualan_id,
            "harga_jual_lama": penjualan.harga_jual,
            "harga_jual_baru": penjualan.harga_jual,
            "harga_beli_lama": harga_beli_lama,
            "harga_beli_baru": harga_beli_baru,
            "keuntungan_lama": keuntungan_lama,
            "keuntungan_baru": keuntungan_baru,
            "reason": reason,
            "company_id": company_id,
            "tanggal_update": tanggal,
        },
    )
    return steps.result(
        data={"id": penjualan_id, "harga_beli": harga_beli_baru, "keuntungan": keuntungan_baru},
        message="Harga unit terjual berhasil diperbarui.",
    )


def bayar_cicilan(penjualan_id, data):
    """Pembayaran lanjutan untuk penjualan cash bertahap/kredit."""
    penjualan = store.require("penjualans", penjualan_id, "Data penjualan")
    status = StatusPenjualan(penjualan.status)
    if status not in PENJUALAN_EDITABLE:
        raise InvalidTransition(f"Penjualan berstatus {status.label} tidak bisa menerima cicilan.")
    jumlah = v.amount(data, "jumlah_bayar", "Jumlah bayar", minimum=1, required=True)
    tanggal = v.tanggal(data, "tanggal_bayar", "Tanggal bayar")
    tujuan_id = v.optional_int(data, "tujuan_pembayaran_id") or penjualan.company_id
    store.require("companies", tujuan_id, "Rekening tujuan")
    keterangan = v.text(data, "keterangan")
    pembelian = store.require("pembelian", penjualan.pembelian_id, "Data pembelian")

    batch_ke = (store.max_value("cicilan", "batch_ke", penjualan_id=penjualan_id) or 0) + 1
    sisa_baru = (penjualan.sisa_bayar or 0) - jumlah
    lunas = sisa_baru <= 0
    patch = {
        "harga_bayar": (penjualan.harga_bayar or 0) + jumlah,
        "sisa_bayar": max(0, sisa_baru),
    }
    if lunas:
        patch["status"] = transition(status, StatusPenjualan.SELESAI).value
        patch["tanggal_lunas"] = tanggal

    cicilan = store.insert(
        "cicilan",
        {
            "penjualan_id": penjualan_id,
            "batch_ke": batch_ke,
            "tanggal_bayar": tanggal,
            "jumlah_bayar": jumlah,
            "sisa_bayar": max(0, sisa_baru),
            "jenis_pembayaran": penjualan.jenis_pembayaran,
            "tujuan_pembayaran_id": tujuan_id,
            "keterangan": keterangan or None,
            "status": "completed" if lunas else "pending",
        },
    )
    store.update("penjualans", patch, id=penjualan_id)

    steps = SecondarySteps("penjualan.cicilan")
    if lunas:
        mark_unit(steps, pembelian.id, StatusPembelian.SOLD)
    brand, jenis, plat = describe_unit(pembelian)
    judul = "cash bertahap" if penjualan.jenis_pembayaran == "cash_bertahap" else "cicilan"
    post_entry(
        steps,
        tanggal=tanggal,
        divisi=penjualan.divisi,
        cabang_id=penjualan.cabang_id,
        company_id=tujuan_id,
        pembelian_id=pembelian.id,
        penjualan_id=penjualan_id,
        kredit=jumlah,
        keterangan=f"{judul} ke {batch_ke} dari {brand} - {jenis} - {plat}",
        jenis="cicilan",
    )
    adjust_capital(steps, tujuan_id, jumlah)

    result = steps.result(
        data={"id": cicilan.id, "batch_ke": batch_ke, "sisa_bayar": max(0, sisa_baru), "lunas": lunas},
        message="Pembayaran berhasil dicatat." + (" Penjualan sudah lunas." if lunas else ""),
    )
    if sisa_baru < 0:
        result.warnings.append(f"Pembayaran melebihi sisa tagihan sebesar {rupiah(-sisa_baru)}.")
    return result
