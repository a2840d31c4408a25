"""Biro jasa: pengurusan dokumen kendaraan (STNK, balik nama, dll).

Kendaraan dicatat sebagai teks bebas, jadi tidak ada pengecekan stok atau
status pembelian di sini. Semua arus kas tetap masuk pembukuan dan modal.
"""
from showroom import store
from showroom import validators as v
from showroom.errors import ValidationError
from showroom.ledger import adjust_capital, post_entry
from showroom.money import rupiah
from showroom.outbox import SecondarySteps
from showroom.status import StatusBiroJasa, transition


def _require_case(biro_jasa_id):
    return store.require("biro_jasa", biro_jasa_id, "Data biro jasa")


def _require_open(case):
    if case.status != StatusBiroJasa.DALAM_PROSES:
        raise ValidationError(f"Biro jasa berstatus {case.status} tidak bisa diproses lagi.")


def _post(steps, case, *, tanggal, company_id, keterangan, debit=0, kredit=0):
    post_entry(
        steps,
        tanggal=tanggal,
        divisi=case.divisi,
        cabang_id=case.cabang_id,
        company_id=company_id,
        debit=debit,
        kredit=kredit,
        keterangan=keterangan,
        jenis="biro_jasa",
    )


def _label(case):
    return f"{case.jenis_pengurusan} - {case.plat_nomor or '-'}"


def _status_after_payment(estimasi, total_bayar):
    if estimasi > 0 and total_bayar >= estimasi:
        return StatusBiroJasa.SELESAI
    return StatusBiroJasa.DALAM_PROSES


def create_biro_jasa(data):
    tanggal = v.tanggal(data, "tanggal")
    nama_customer = v.text(data, "nama_customer", "Nama customer")
    jenis_pengurusan = v.text(data, "jenis_pengurusan", "Jenis pengurusan")
    estimasi = v.amount(data, "estimasi_biaya", "Estimasi biaya")
    dp = v.amount(data, "dp", "DP")
    rekening_tujuan_id = v.optional_int(data, "rekening_tujuan_id")
    if dp > 0:
        if not rekening_tujuan_id:
            raise ValidationError("Rekening tujuan wajib dipilih jika ada DP.")
        store.require("companies", rekening_tujuan_id, "Rekening tujuan")
    cabang_id = v.optional_int(data, "cabang_id")

    case = store.insert(
        "biro_jasa",
        {
            "tanggal": tanggal,
            "divisi": v.text(data, "divisi") or None,
            "cabang_id": cabang_id,
            "plat_nomor": v.text(data, "plat_nomor").upper() or None,
            "jenis_motor": v.text(data, "jenis_motor") or None,
            "warna": v.text(data, "warna") or None,
            "tahun": v.optional_int(data, "tahun"),
            "nama_customer": nama_customer,
            "no_telepon": v.text(data, "no_telepon") or None,
            "jenis_pengurusan": jenis_pengurusan,
            "keterangan": v.text(data, "keterangan") or None,
            "estimasi_biaya": estimasi,
            "dp": dp,
            "total_bayar": dp,
            "sisa": max(0, estimasi - dp),
            "rekening_tujuan_id": rekening_tujuan_id,
            "status": _status_after_payment(estimasi, dp).value,
        },
    )

    steps = SecondarySteps("biro_jasa.create")
    if dp > 0:
        _post(
            steps,
            case,
            tanggal=tanggal,
            company_id=rekening_tujuan_id,
            kredit=dp,
            keterangan=f"DP Biro Jasa - {_label(case)}",
        )
        adjust_capital(steps, rekening_tujuan_id, dp)
    return steps.result(data={"id": case.id, "status": case.status}, message="Data biro jasa berhasil disimpan!")


def input_dp_vendor(biro_jasa_id, data):
    """DP yang dibayarkan ke vendor pengurusan (uang keluar)."""
    case = _require_case(biro_jasa_id)
    # customer bisa lunas lebih dulu, DP vendor tetap boleh dicatat
    if case.status == StatusBiroJasa.BATAL:
        raise ValidationError("Biro jasa yang dibatalkan tidak bisa menerima DP vendor.")
    if case.dp_vendor:
        raise ValidationError("DP vendor sudah pernah diinput.")
    dp_vendor = v.amount(data, "dp_vendor", "DP vendor", minimum=1, required=True)
    tanggal = v.tanggal(data, "tanggal")
    company_id = v.optional_int(data, "company_id")
    if not company_id:
        raise ValidationError("Sumber dana wajib dipilih.")
    store.require("companies", company_id, "Sumber dana")

    store.update(
        "biro_jasa",
        {"dp_vendor": dp_vendor, "dp_vendor_date": tanggal, "dp_vendor_company_id": company_id},
        id=case.id,
    )

    steps = SecondarySteps("biro_jasa.dp_vendor")
    _post(
        steps,
        case,
        tanggal=tanggal,
        company_id=company_id,
        debit=dp_vendor,
        keterangan=f"DP Vendor Biro Jasa - {case.plat_nomor or '-'}",
    )
    adjust_capital(steps, company_id, -dp_vendor)
    return steps.result(data={"id": case.id, "dp_vendor": dp_vendor}, message="DP vendor berhasil disimpan.")


def bayar_biro_jasa(biro_jasa_id, data):
    """Cicilan customer. Status otomatis Selesai saat total bayar mencapai estimasi."""
    case = _require_case(biro_jasa_id)
    _require_open(case)
    jumlah = v.amount(data, "jumlah_bayar", "Jumlah bayar", minimum=1, required=True)
    tanggal = v.tanggal(data, "tanggal_bayar", "Tanggal bayar")
    tujuan_id = v.optional_int(data, "tujuan_pembayaran_id") or case.rekening_tujuan_id
    if not tujuan_id:
        raise ValidationError("Rekening tujuan wajib dipilih.")
    store.require("companies", tujuan_id, "Rekening tujuan")
    keterangan = v.text(data, "keterangan")

    estimasi = case.estimasi_biaya or 0
    total_bayar = (case.total_bayar or 0) + jumlah
    status = transition(case.status, _status_after_payment(estimasi, total_bayar))

    cicilan = store.insert(
        "biro_jasa_cicilan",
        {
            "biro_jasa_id": case.id,
            "tanggal_bayar": tanggal,
            "jumlah_bayar": jumlah,
            "tujuan_pembayaran_id": tujuan_id,
            "keterangan": keterangan or None,
        },
    )
    store.update(
        "biro_jasa",
        {"total_bayar": total_bayar, "sisa": max(0, estimasi - total_bayar), "status": status.value},
        id=case.id,
    )

    steps = SecondarySteps("biro_jasa.cicilan")
    _post(
        steps,
        case,
        tanggal=tanggal,
        company_id=tujuan_id,
        kredit=jumlah,
        keterangan=f"Cicilan Biro Jasa - {_label(case)}",
    )
    adjust_capital(steps, tujuan_id, jumlah)
    result = steps.result(
        data={"id": cicilan.id, "total_bayar": total_bayar, "status": status.value},
        message="Pembayaran biro jasa berhasil dicatat.",
    )
    if estimasi and total_bayar > estimasi:
        result.warnings.append(f"Total bayar melebihi estimasi sebesar {rupiah(total_bayar - estimasi)}.")
    return result


def catat_keuntungan(biro_jasa_id, data):
    """Biaya modal riil ke vendor. Keuntungan = estimasi biaya - biaya modal.

    DP vendor yang sudah dibukukan tidak dicatat ulang, hanya sisa pelunasannya.
    """
    case = _require_case(biro_jasa_id)
    if case.status == StatusBiroJasa.BATAL:
        raise ValidationError("Biro jasa yang dibatalkan tidak bisa dihitung keuntungannya.")
    if case.biaya_modal:
        raise ValidationError("Biaya modal sudah pernah dicatat.")
    biaya_modal = v.amount(data, "biaya_modal", "Biaya modal", minimum=1, required=True)
    if biaya_modal < (case.dp_vendor or 0):
        raise ValidationError(f"Biaya modal tidak boleh kurang dari DP vendor ({rupiah(case.dp_vendor)}).")
    tanggal = v.tanggal(data, "tanggal")
    company_id = v.optional_int(data, "sumber_dana_id")
    if not company_id:
        raise ValidationError("Sumber dana wajib dipilih.")
    store.require("companies", company_id, "Sumber dana")

    keuntungan = (case.estimasi_biaya or 0) - biaya_modal
    pelunasan = biaya_modal - (case.dp_vendor or 0)
    store.update("biro_jasa", {"biaya_modal": biaya_modal, "keuntungan": keuntungan}, id=case.id)

    steps = SecondarySteps("biro_jasa.keuntungan")
    if pelunasan > 0:
        _post(
            steps,
            case,
            tanggal=tanggal,
            company_id=company_id,
            debit=pelunasan,
            keterangan=f"Biaya Modal Biro Jasa - {_label(case)}",
        )
        adjust_capital(steps, company_id, -pelunasan)
    return steps.result(
        data={"id": case.id, "biaya_modal": biaya_modal, "keuntungan": keuntungan},
        message=f"Keuntungan biro jasa {rupiah(keuntungan)}.",
    )


def batal_biro_jasa(biro_jasa_id, data):
    case = _require_case(biro_jasa_id)
    reason = v.text(data, "reason", "Alasan pembatalan")
    status = transition(case.status, StatusBiroJasa.BATAL)
    keterangan = f"{case.keterangan}\n" if case.keterangan else ""
    store.update(
        "biro_jasa",
        {"status": status.value, "keterangan": f"{keterangan}[BATAL] {reason}"},
        id=case.id,
    )
    return SecondarySteps("biro_jasa.batal").result(
        data={"id": case.id, "status": status.value},
        message="Biro jasa dibatalkan.",
    )
