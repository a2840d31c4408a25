"""Perubahan harga modal (harga_final) pembelian dan efeknya.

Setiap revisi: harga_final pembelian berubah sebesar delta, satu baris riwayat
harga ditambahkan, pembukuan dan modal perusahaan disesuaikan, lalu harga beli
dan keuntungan setiap penjualan aktif atas unit tersebut ikut digeser.

Penurunan harga tidak diperlakukan sama di semua jalur: update harga
pembelian mengembalikan modal saat harga turun, sedangkan biaya booked dan QC
hanya pernah menambah biaya sehingga tidak punya jalur pengembalian.
"""
from showroom import store
from showroom.errors import ValidationError
from showroom.ledger import adjust_capital, post_entry
from showroom.money import rupiah
from showroom.outbox import SecondarySteps
from showroom.status import PENJUALAN_EDITABLE, StatusPenjualan
from showroom import validators as v


def apply_cost_delta(
    steps,
    pembelian,
    delta,
    *,
    company_id,
    tanggal,
    keterangan,
    jenis,
    restore_on_decrease,
):
    """Pembukuan, modal dan cascade ke penjualan untuk delta harga_final yang sudah disimpan."""
    if delta > 0:
        post_entry(
            steps,
            tanggal=tanggal,
            divisi=pembelian.divisi,
            cabang_id=pembelian.cabang_id,
            company_id=company_id,
            pembelian_id=pembelian.id,
            debit=delta,
            keterangan=keterangan,
            jenis=jenis,
        )
        adjust_capital(steps, company_id, -delta)
    elif delta < 0 and restore_on_decrease:
        post_entry(
            steps,
            tanggal=tanggal,
            divisi=pembelian.divisi,
            cabang_id=pembelian.cabang_id,
            company_id=company_id,
            pembelian_id=pembelian.id,
            kredit=-delta,
            keterangan=keterangan,
            jenis=jenis,
        )
        adjust_capital(steps, company_id, -delta)

    if delta:
        cascade_to_penjualan(steps, pembelian.id, delta)


def cascade_to_penjualan(steps, pembelian_id, delta):
    for penjualan in store.select("penjualans", pembelian_id=pembelian_id):
        if penjualan.status == StatusPenjualan.CANCELLED_DP_HANGUS:
            continue
        harga_beli = (penjualan.harga_beli or 0) + delta
        steps.update(
            "Update harga beli penjualan",
            "penjualans",
            {"harga_beli": harga_beli, "keuntungan": (penjualan.harga_jual or 0) - harga_beli},
            id=penjualan.id,
        )


def _history(steps, values):
    steps.insert("Riwayat harga", "price_histories_pembelian", values)


def update_harga_pembelian(pembelian_id, data):
    """Ganti rincian harga modal: harga beli + pajak + QC + biaya lain."""
    pembelian = store.require("pembelian", pembelian_id, "Data pembelian")
    harga_beli = v.amount(data, "harga_beli", "Harga beli", minimum=1, required=True)
    biaya_pajak = v.amount(data, "biaya_pajak", "Biaya pajak")
    biaya_qc = v.amount(data, "biaya_qc", "Biaya QC")
    biaya_lain_lain = v.amount(data, "biaya_lain_lain", "Biaya lain-lain")
    keterangan_biaya_lain = v.text(data, "keterangan_biaya_lain")
    if biaya_lain_lain > 0 and not keterangan_biaya_lain:
        raise ValidationError("Keterangan biaya lain-lain wajib diisi jika ada biaya lain-lain.")
    reason = v.text(data, "reason", "Alasan update harga")
    tanggal = v.tanggal(data, "tanggal_update")
    company_id = v.optional_int(data, "company_id") or pembelian.sumber_dana_1_id
    store.require("companies", company_id, "Sumber dana")

    harga_beli_lama = pembelian.harga_beli
    harga_final_lama = pembelian.cost_basis
    harga_final_baru = harga_beli + biaya_pajak + biaya_qc + biaya_lain_lain
    delta = harga_final_baru - harga_final_lama

    store.update(
        "pembelian",
        {"harga_beli": harga_beli, "harga_final": harga_final_baru},
        id=pembelian.id,
    )

    steps = SecondarySteps("pembelian.update_harga")
    _history(
        steps,
        {
            "pembelian_id": pembelian.id,
            "jenis": "update_harga",
            "harga_beli_lama": harga_beli_lama,
            "harga_beli_baru": harga_beli,
            "harga_final_lama": harga_final_lama,
            "harga_final_baru": harga_final_baru,
            "biaya_pajak": biaya_pajak,
            "biaya_qc": biaya_qc,
            "biaya_lain_lain": biaya_lain_lain,
            "keterangan_biaya_lain": keterangan_biaya_lain or None,
            "reason": reason,
            "company_id": company_id,
            "tanggal_update": tanggal,
        },
    )
    arah = "Kenaikan" if delta >= 0 else "Penurunan"
    apply_cost_delta(
        steps,
        pembelian,
        delta,
        company_id=company_id,
        tanggal=tanggal,
        keterangan=f"{arah} Harga Pembelian {pembelian.plat_nomor} - {reason}",
        jenis="update_harga",
        restore_on_decrease=True,
    )
    return steps.result(
        data={"pembelian_id": pembelian.id, "harga_final": harga_final_baru, "selisih": delta},
        message=f"Harga pembelian diperbarui, selisih {rupiah(delta)}.",
    )


def update_harga_booked(penjualan_id, data):
    """Tambahan biaya (QC, pajak, lain-lain) untuk unit yang masih booked."""
    penjualan = store.require("penjualans", penjualan_id, "Data penjualan")
    if StatusPenjualan(penjualan.status) not in PENJUALAN_EDITABLE:
        raise ValidationError("Update harga booked hanya untuk penjualan yang masih booked/pending.")
    pembelian = store.require("pembelian", penjualan.pembelian_id, "Data pembelian")

    biaya_qc = v.amount(data, "biaya_qc", "Biaya QC")
    biaya_pajak = v.amount(data, "biaya_pajak", "Biaya pajak")
    biaya_lain_lain = v.amount(data, "biaya_lain_lain", "Biaya lain-lain")
    keterangan_biaya_lain = v.text(data, "keterangan_biaya_lain")
    if biaya_lain_lain > 0 and not keterangan_biaya_lain:
        raise ValidationError("Keterangan biaya lain-lain wajib diisi jika ada biaya lain-lain.")
    total = biaya_qc + biaya_pajak + biaya_lain_lain
    if total <= 0:
        raise ValidationError("Total biaya tambahan harus lebih dari 0.")
    reason = v.text(data, "reason", "Alasan update harga")
    tanggal = v.tanggal(data, "tanggal_update")
    company_id = v.optional_int(data, "sumber_dana_id") or pembelian.sumber_dana_1_id
    store.require("companies", company_id, "Sumber dana")

    harga_final_lama = pembelian.cost_basis
    harga_final_baru = harga_final_lama + total
    store.update("pembelian", {"harga_final": harga_final_baru}, id=pembelian.id)

    steps = SecondarySteps("penjualan.update_harga_booked")
    _history(
        steps,
        {
            "pembelian_id": pembelian.id,
            "jenis": "booked",
            "harga_beli_lama": pembelian.harga_beli,
            "harga_beli_baru": pembelian.harga_beli,
            "harga_final_lama": harga_final_lama,
            "harga_final_baru": harga_final_baru,
            "biaya_pajak": biaya_pajak,
            "biaya_qc": biaya_qc,
            "biaya_lain_lain": biaya_lain_lain,
            "keterangan_biaya_lain": keterangan_biaya_lain or None,
            "reason": reason,
            "company_id": company_id,
            "tanggal_update": tanggal,
        },
    )
    apply_cost_delta(
        steps,
        pembelian,
        total,
        company_id=company_id,
        tanggal=tanggal,
        keterangan=f"Update Harga Booked {pembelian.plat_nomor} - {reason}",
        jenis="update_harga",
        restore_on_decrease=False,
    )
    steps.update(
        "Update alasan harga penjualan",
        "penjualans",
        {
            "reason_update_harga": reason,
            "biaya_lain_lain": (penjualan.biaya_lain_lain or 0) + total,
            "keterangan_biaya_lain": keterangan_biaya_lain or penjualan.keterangan_biaya_lain,
        },
        id=penjualan.id,
    )
    return steps.result(
        data={"penjualan_id": penjualan.id, "harga_final": harga_final_baru, "total_biaya": total},
        message=f"Biaya tambahan {rupiah(total)} berhasil dicatat.",
    )


def record_qc(pembelian_id, data):
    pembelian = store.require("pembelian", pembelian_id, "Data pembelian")
    total = v.amount(data, "total_pengeluaran", "Total pengeluaran QC", minimum=1, required=True)
    jenis_qc = v.text(data, "jenis_qc", "Jenis QC")
    keterangan = v.text(data, "keterangan")
    tanggal = v.tanggal(data, "tanggal_qc", "Tanggal QC")
    company_id = v.optional_int(data, "sumber_dana_id") or pembelian.sumber_dana_1_id
    store.require("companies", company_id, "Sumber dana")

    qc = store.insert(
        "qc_history",
        {
            "pembelian_id": pembelian.id,
            "tanggal_qc": tanggal,
            "jenis_qc": jenis_qc,
            "total_pengeluaran": total,
            "keterangan": keterangan or None,
            "sumber_dana_id": company_id,
        },
    )

    harga_final_lama = pembelian.cost_basis
    steps = SecondarySteps("pembelian.qc")
    steps.update(
        "Update harga final",
        "pembelian",
        {"harga_final": harga_final_lama + total},
        id=pembelian.id,
    )
    _history(
        steps,
        {
            "pembelian_id": pembelian.id,
            "jenis": "qc",
            "harga_beli_lama": pembelian.harga_beli,
            "harga_beli_baru": pembelian.harga_beli,
            "harga_final_lama": harga_final_lama,
            "harga_final_baru": harga_final_lama + total,
            "biaya_qc": total,
            "reason": f"QC: {jenis_qc}",
            "company_id": company_id,
            "tanggal_update": tanggal,
        },
    )
    apply_cost_delta(
        steps,
        pembelian,
        total,
        company_id=company_id,
        tanggal=tanggal,
        keterangan=f"QC {jenis_qc} - {pembelian.plat_nomor}" + (f" - {keterangan}" if keterangan else ""),
        jenis="qc",
        restore_on_decrease=False,
    )
    return steps.result(
        data={"qc_id": qc.id, "pembelian_id": pembelian.id, "harga_final": harga_final_lama + total},
        message="Data QC berhasil disimpan.",
    )
