import logging

from showroom import store
from showroom import validators as v
from showroom.errors import ValidationError
from showroom.inventory import add_stock, remove_stock
from showroom.ledger import adjust_capital, post_entry
from showroom.money import rupiah
from showroom.outbox import SecondarySteps
from showroom.status import StatusPembelian

logger = logging.getLogger(__name__)

DESCRIPTIVE_FIELDS = ("tahun", "warna", "kilometer", "keterangan", "tanggal_pajak")


def _funding_from(data):
    """[(company_id, nominal, urutan)] dari input form, sumber dana 2 opsional."""
    company_1 = v.optional_int(data, "sumber_dana_1_id")
    if not company_1:
        raise ValidationError("Sumber dana 1 wajib dipilih.")
    nominal_1 = v.amount(data, "nominal_dana_1", "Nominal dana 1", minimum=1, required=True)
    funding = [(company_1, nominal_1, 1)]

    company_2 = v.optional_int(data, "sumber_dana_2_id")
    nominal_2 = v.amount(data, "nominal_dana_2", "Nominal dana 2")
    if nominal_2 and not company_2:
        raise ValidationError("Sumber dana 2 wajib dipilih jika nominal dana 2 diisi.")
    if company_2 and nominal_2:
        if company_2 == company_1:
            raise ValidationError("Sumber dana 1 dan 2 tidak boleh perusahaan yang sama.")
        funding.append((company_2, nominal_2, 2))
    return funding


def _check_funding(funding, harga_beli, restored=None):
    """Total sumber dana = harga beli dan modal tiap perusahaan mencukupi.

    ``restored`` berisi dana lama per perusahaan yang akan dikembalikan dulu
    (dipakai saat edit pembelian).
    """
    total = sum(nominal for _, nominal, _ in funding)
    if total != harga_beli:
        raise ValidationError(
            f"Total sumber dana ({rupiah(total)}) harus sama dengan harga beli ({rupiah(harga_beli)})."
        )
    restored = restored or {}
    for company_id, nominal, urutan in funding:
        company = store.require("companies", company_id, f"Sumber dana {urutan}")
        tersedia = (company.modal or 0) + restored.get(company_id, 0)
        if tersedia < nominal:
            raise ValidationError(
                f"Modal {company.nama_perusahaan} tidak mencukupi "
                f"(tersedia {rupiah(tersedia)}, dibutuhkan {rupiah(nominal)})."
            )


def _post_funding(steps, pembelian_id, funding, *, tanggal, divisi, cabang_id, plat_nomor, keterangan):
    for company_id, nominal, urutan in funding:
        adjust_capital(steps, company_id, -nominal)
        post_entry(
            steps,
            tanggal=tanggal,
            divisi=divisi,
            cabang_id=cabang_id,
            company_id=company_id,
            pembelian_id=pembelian_id,
            debit=nominal,
            keterangan=f"Pembelian motor {plat_nomor} - {keterangan or '-'} (Sumber Dana {urutan})",
            jenis="pembelian",
        )


def create_pembelian(data):
    tanggal = v.tanggal(data, "tanggal_pembelian", "Tanggal pembelian", default_today=False)
    divisi = v.text(data, "divisi", "Divisi")
    plat_nomor = v.text(data, "plat_nomor", "Plat nomor").upper()
    harga_beli = v.amount(data, "harga_beli", "Harga beli", minimum=1, required=True)
    jenis_motor = store.require("jenis_motor", v.optional_int(data, "jenis_motor_id"), "Jenis motor")
    brand_id = v.optional_int(data, "brand_id") or jenis_motor.brand_id
    cabang_id = v.optional_int(data, "cabang_id")
    if cabang_id:
        store.require("cabang", cabang_id, "Cabang")
    keterangan = v.text(data, "keterangan")

    funding = _funding_from(data)
    _check_funding(funding, harga_beli)

    values = {
        "tanggal_pembelian": tanggal,
        "divisi": divisi,
        "cabang_id": cabang_id,
        "brand_id": brand_id,
        "jenis_motor_id": jenis_motor.id,
        "plat_nomor": plat_nomor,
        "harga_beli": harga_beli,
        "harga_final": harga_beli,
        "sumber_dana_1_id": funding[0][0],
        "nominal_dana_1": funding[0][1],
        "sumber_dana_2_id": funding[1][0] if len(funding) > 1 else None,
        "nominal_dana_2": funding[1][1] if len(funding) > 1 else 0,
        "keterangan": keterangan or None,
        "status": StatusPembelian.READY.value,
    }
    for field in DESCRIPTIVE_FIELDS:
        if data.get(field) not in (None, "") and field not in values:
            values[field] = data[field]
    pembelian = store.insert("pembelian", values)

    steps = SecondarySteps("pembelian.create")
    add_stock(steps, jenis_motor.id)
    _post_funding(
        steps,
        pembelian.id,
        funding,
        tanggal=tanggal,
        divisi=divisi,
        cabang_id=cabang_id,
        plat_nomor=plat_nomor,
        keterangan=keterangan,
    )
    logger.info("Pembelian %s disimpan (id=%s)", plat_nomor, pembelian.id)
    return steps.result(data={"id": pembelian.id}, message="Pembelian berhasil disimpan!")


def update_pembelian(pembelian_id, data):
    """Edit pembelian. Harga beli, sumber dana dan jenis motor hanya bisa diubah saat unit ready."""
    pembelian = store.require("pembelian", pembelian_id, "Data pembelian")
    old = store.as_dict(pembelian)
    old_funding = [(company_id, nominal, i + 1) for i, (company_id, nominal) in enumerate(pembelian.funding())]

    merged = {**old, **{key: value for key, value in data.items() if value is not None}}
    tanggal = v.tanggal(merged, "tanggal_pembelian", "Tanggal pembelian", default_today=False)
    divisi = v.text(merged, "divisi", "Divisi")
    plat_nomor = v.text(merged, "plat_nomor", "Plat nomor").upper()
    harga_beli = v.amount(merged, "harga_beli", "Harga beli", minimum=1, required=True)
    jenis_motor_id = v.optional_int(merged, "jenis_motor_id")
    jenis_motor = store.require("jenis_motor", jenis_motor_id, "Jenis motor")
    cabang_id = v.optional_int(merged, "cabang_id")
    keterangan = v.text(merged, "keterangan")
    funding = _funding_from(merged)

    funding_changed = [(c, n) for c, n, _ in funding] != [(c, n) for c, n, _ in old_funding]
    jenis_changed = jenis_motor.id != old["jenis_motor_id"]
    harga_changed = harga_beli != old["harga_beli"]
    if (funding_changed or jenis_changed or harga_changed) and old["status"] != StatusPembelian.READY:
        raise ValidationError("Harga, sumber dana dan jenis motor tidak bisa diubah karena unit sudah dibooking/terjual.")
    if funding_changed or harga_changed:
        restored = {}
        for company_id, nominal, _ in old_funding:
            restored[company_id] = restored.get(company_id, 0) + nominal
        _check_funding(funding, harga_beli, restored=restored)

    patch = {
        "tanggal_pembelian": tanggal,
        "divisi": divisi,
        "cabang_id": cabang_id,
        "brand_id": v.optional_int(merged, "brand_id") or jenis_motor.brand_id,
        "jenis_motor_id": jenis_motor.id,
        "plat_nomor": plat_nomor,
        "harga_beli": harga_beli,
        # biaya yang sudah dibukukan ikut terbawa
        "harga_final": (old["harga_final"] or old["harga_beli"]) + (harga_beli - old["harga_beli"]),
        "sumber_dana_1_id": funding[0][0],
        "nominal_dana_1": funding[0][1],
        "sumber_dana_2_id": funding[1][0] if len(funding) > 1 else None,
        "nominal_dana_2": funding[1][1] if len(funding) > 1 else 0,
        "keterangan": keterangan or None,
    }
    for field in DESCRIPTIVE_FIELDS:
        if field in data and field != "keterangan":
            patch[field] = data[field]
    store.update("pembelian", patch, id=pembelian_id)

    steps = SecondarySteps("pembelian.update")
    if funding_changed or harga_changed:
        for company_id, nominal, _ in old_funding:
            adjust_capital(steps, company_id, nominal)
        steps.delete("Hapus pembukuan lama", "pembukuan", pembelian_id=pembelian_id, jenis="pembelian")
        _post_funding(
            steps,
            pembelian_id,
            funding,
            tanggal=tanggal,
            divisi=divisi,
            cabang_id=cabang_id,
            plat_nomor=plat_nomor,
            keterangan=keterangan,
        )
    if jenis_changed:
        remove_stock(steps, old["jenis_motor_id"])
        add_stock(steps, jenis_motor.id)
    return steps.result(data={"id": pembelian_id}, message="Pembelian berhasil diperbarui!")


def delete_pembelian(pembelian_id):
    pembelian = store.require("pembelian", pembelian_id, "Data pembelian")
    if store.select("penjualans", pembelian_id=pembelian_id):
        raise ValidationError("Pembelian tidak bisa dihapus karena sudah memiliki data penjualan.")
    if pembelian.status != StatusPembelian.READY:
        raise ValidationError("Hanya unit berstatus ready yang bisa dihapus.")
    jenis_motor_id = pembelian.jenis_motor_id
    funding = pembelian.funding()

    # baris turunan harus hilang dulu karena foreign key ke pembelian
    store.delete("pembukuan", pembelian_id=pembelian_id)
    store.delete("price_histories_pembelian", pembelian_id=pembelian_id)
    store.delete("qc_history", pembelian_id=pembelian_id)
    store.delete("pembelian", id=pembelian_id)

    steps = SecondarySteps("pembelian.delete")
    remove_stock(steps, jenis_motor_id)
    for company_id, nominal in funding:
        adjust_capital(steps, company_id, nominal)
    return steps.result(data={"id": pembelian_id}, message="Pembelian berhasil dihapus.")
