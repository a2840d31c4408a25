import pytest

from showroom import store
from showroom.errors import InvalidTransition, NotFoundError, ValidationError
from showroom.penjualan import (
    adjust_sold_unit,
    bayar_cicilan,
    cancel_dp,
    create_penjualan,
    creation_cash,
    delete_penjualan,
    update_penjualan,
)


def _ledger(pembelian_id, jenis=None):
    filters = {"pembelian_id": pembelian_id}
    if jenis:
        filters["jenis"] = jenis
    return store.select("pembukuan", **filters)


def test_full_cash_sale(seed, buat_pembelian, modal, qty, fresh):
    pembelian_id = buat_pembelian()
    assert modal(seed.company_a) == 90_000_000

    result = create_penjualan(
        {
            "tanggal": "01/02/2025",
            "pembelian_id": pembelian_id,
            "company_id": seed.company_a,
            "nama_pembeli": "Budi",
            "jenis_pembayaran": "cash_penuh",
            "harga_jual": 12_000_000,
            "harga_bayar": 12_000_000,
        }
    )

    penjualan = fresh("penjualans", result.data["id"])
    assert result.warnings == []
    assert penjualan.status == "selesai"
    assert penjualan.keuntungan == 2_000_000
    assert penjualan.harga_beli == 10_000_000
    assert penjualan.sisa_bayar == 0
    assert fresh("pembelian", pembelian_id).status == "sold"
    assert qty(seed.jenis) == 0
    assert modal(seed.company_a) == 102_000_000
    rows = _ledger(pembelian_id, "penjualan")
    assert [(r.debit, r.kredit) for r in rows] == [(0, 12_000_000)]
    assert rows[0].keterangan == "cash penuh dari Honda - CBR 150 - B 1234 ABC"


def test_staged_sale_books_unit_and_posts_dp(seed, buat_pembelian, buat_penjualan, modal, fresh):
    pembelian_id = buat_pembelian()

    penjualan_id = buat_penjualan(
        pembelian_id,
        jenis_pembayaran="cash_bertahap",
        dp=3_000_000,
        harga_bayar=None,
        subsidi_ongkir=100_000,
    )

    penjualan = fresh("penjualans", penjualan_id)
    assert penjualan.status == "booked"
    assert penjualan.sisa_bayar == 9_000_000
    assert fresh("pembelian", pembelian_id).status == "booked"
    assert modal(seed.company_a) == 90_000_000 + 3_100_000
    rows = _ledger(pembelian_id, "penjualan")
    assert [r.kredit for r in rows] == [3_100_000]
    assert rows[0].keterangan.startswith("DP dari Honda")


def test_status_label_is_accepted(seed, buat_pembelian, buat_penjualan, fresh):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="kredit", dp=2_000_000, harga_bayar=None, status="Pending"
    )
    assert fresh("penjualans", penjualan_id).status == "pending"


def test_sale_requires_ready_unit(buat_pembelian, buat_penjualan):
    pembelian_id = buat_pembelian()
    buat_penjualan(pembelian_id)

    with pytest.raises(ValidationError, match="tidak tersedia"):
        buat_penjualan(pembelian_id)


def test_sale_rejects_unknown_company(buat_pembelian, buat_penjualan):
    pembelian_id = buat_pembelian()
    with pytest.raises(NotFoundError):
        buat_penjualan(pembelian_id, company_id=999)
    assert store.select("penjualans") == []


def test_creation_cash_adds_remainder_when_staged_sale_is_paid_off():
    values = {
        "jenis_pembayaran": "kredit",
        "harga_jual": 12_000_000,
        "harga_bayar": 12_000_000,
        "dp": 4_000_000,
        "subsidi_ongkir": 0,
        "titip_ongkir": 50_000,
        "status": "selesai",
    }
    assert creation_cash(values) == (4_050_000, 12_050_000)


def test_stock_conservation_on_create_then_delete(seed, buat_pembelian, buat_penjualan, qty, fresh):
    pembelian_id = buat_pembelian()
    before = qty(seed.jenis)

    penjualan_id = buat_penjualan(pembelian_id)
    delete_penjualan(penjualan_id)

    assert qty(seed.jenis) == before
    assert fresh("pembelian", pembelian_id).status == "ready"
    assert store.get("penjualans", penjualan_id) is None
    assert _ledger(pembelian_id, "penjualan") == []


def test_delete_returns_cost_and_withdraws_profit(seed, buat_pembelian, buat_penjualan, modal):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(pembelian_id)
    assert modal(seed.company_a) == 102_000_000

    delete_penjualan(penjualan_id)

    # +harga beli 10jt, -keuntungan 2jt
    assert modal(seed.company_a) == 110_000_000


def test_delete_removes_installments(buat_pembelian, buat_penjualan):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )
    bayar_cicilan(penjualan_id, {"jumlah_bayar": 1_000_000, "tanggal_bayar": "2025-02-10"})

    delete_penjualan(penjualan_id)

    assert store.select("cicilan", penjualan_id=penjualan_id) == []
    assert _ledger(pembelian_id, "cicilan") == []


def test_full_forfeit_cancellation_posts_nothing(seed, buat_pembelian, buat_penjualan, modal, qty, fresh):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )
    ledger_before = len(store.select("pembukuan"))
    modal_before = modal(seed.company_a)
    qty_before = qty(seed.jenis)

    result = cancel_dp(penjualan_id, {"policy": "full_forfeit", "reason": "Customer mundur"})

    penjualan = fresh("penjualans", penjualan_id)
    assert result.warnings == []
    assert penjualan.status == "cancelled_dp_hangus"
    assert penjualan.dp == 0
    assert penjualan.harga_bayar == 0
    assert penjualan.sisa_bayar == 12_000_000
    assert "[DP CANCELLED] Customer mundur" in penjualan.catatan
    assert fresh("pembelian", pembelian_id).status == "ready"
    assert qty(seed.jenis) == qty_before + 1
    assert len(store.select("pembukuan")) == ledger_before
    assert modal(seed.company_a) == modal_before


def test_partial_refund_posts_one_debit(seed, buat_pembelian, buat_penjualan, modal):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )
    ledger_before = len(store.select("pembukuan"))
    modal_before = modal(seed.company_a)

    cancel_dp(
        penjualan_id,
        {"policy": "partial_refund", "reason": "Batal kredit", "refund_amount": "1.000.000"},
    )

    rows = store.select("pembukuan", jenis="dp_batal")
    assert len(store.select("pembukuan")) == ledger_before + 1
    assert [(r.debit, r.kredit) for r in rows] == [(1_000_000, 0)]
    assert rows[0].keterangan == "Pengembalian DP ke Customer - Batal kredit (Honda B 1234 ABC)"
    assert modal(seed.company_a) == modal_before - 1_000_000


def test_refund_cannot_exceed_dp(buat_pembelian, buat_penjualan):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )
    with pytest.raises(ValidationError, match="melebihi DP"):
        cancel_dp(penjualan_id, {"policy": "partial_refund", "reason": "x", "refund_amount": 4_000_000})


def test_completed_sale_cannot_be_cancelled(buat_pembelian, buat_penjualan):
    penjualan_id = buat_penjualan(buat_pembelian())
    with pytest.raises(InvalidTransition):
        cancel_dp(penjualan_id, {"policy": "full_forfeit", "reason": "x"})


def test_edit_company_transfers_capital(seed, buat_pembelian, buat_penjualan, modal):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )
    assert modal(seed.company_a) == 93_000_000

    result = update_penjualan(penjualan_id, {"company_id": seed.company_b})

    assert result.warnings == []
    assert modal(seed.company_a) == 90_000_000
    assert modal(seed.company_b) == 53_000_000
    rows = _ledger(pembelian_id, "penjualan")
    assert [(r.company_id, r.kredit) for r in rows] == [(seed.company_b, 3_000_000)]


def test_edit_swaps_unit_and_recomputes_profit(seed, buat_pembelian, buat_penjualan, qty, fresh):
    lama = buat_pembelian()
    baru = buat_pembelian(
        plat_nomor="B 5678 DEF",
        jenis_motor_id=seed.jenis_lain,
        harga_beli=11_000_000,
        nominal_dana_1=11_000_000,
    )
    penjualan_id = buat_penjualan(lama, jenis_pembayaran="kredit", dp=2_000_000, harga_bayar=None)
    assert qty(seed.jenis) == 0

    update_penjualan(penjualan_id, {"pembelian_id": baru})

    penjualan = fresh("penjualans", penjualan_id)
    assert penjualan.pembelian_id == baru
    assert penjualan.plat == "B 5678 DEF"
    assert penjualan.harga_beli == 11_000_000
    assert penjualan.keuntungan == 1_000_000
    assert fresh("pembelian", lama).status == "ready"
    assert fresh("pembelian", baru).status == "booked"
    assert qty(seed.jenis) == 1
    assert qty(seed.jenis_lain) == 0


def test_edit_harga_jual_recomputes_profit_and_records_history(buat_pembelian, buat_penjualan, fresh):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )

    update_penjualan(penjualan_id, {"harga_jual": 13_500_000})

    penjualan = fresh("penjualans", penjualan_id)
    assert penjualan.keuntungan == 3_500_000
    assert penjualan.sisa_bayar == 10_500_000
    history = store.select("price_histories", penjualan_id=penjualan_id)
    assert [(h.harga_jual_lama, h.harga_jual_baru) for h in history] == [(12_000_000, 13_500_000)]


def test_cancelled_sale_cannot_be_edited(buat_pembelian, buat_penjualan):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )
    cancel_dp(penjualan_id, {"policy": "full_forfeit", "reason": "x"})

    with pytest.raises(InvalidTransition):
        update_penjualan(penjualan_id, {"nama_pembeli": "Andi"})


def test_installments_complete_the_sale(seed, buat_pembelian, buat_penjualan, modal, fresh):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )

    pertama = bayar_cicilan(penjualan_id, {"jumlah_bayar": 4_000_000, "tanggal_bayar": "2025-02-10"})
    assert pertama.data["batch_ke"] == 1
    assert pertama.data["lunas"] is False
    assert fresh("penjualans", penjualan_id).status == "booked"

    kedua = bayar_cicilan(
        penjualan_id,
        {"jumlah_bayar": 5_000_000, "tanggal_bayar": "2025-03-10", "tujuan_pembayaran_id": seed.company_b},
    )

    penjualan = fresh("penjualans", penjualan_id)
    assert kedua.data["batch_ke"] == 2
    assert penjualan.status == "selesai"
    assert penjualan.sisa_bayar == 0
    assert penjualan.harga_bayar == 12_000_000
    assert penjualan.tanggal_lunas.isoformat() == "2025-03-10"
    assert fresh("pembelian", pembelian_id).status == "sold"
    assert modal(seed.company_a) == 90_000_000 + 3_000_000 + 4_000_000
    assert modal(seed.company_b) == 55_000_000
    rows = _ledger(pembelian_id, "cicilan")
    assert [r.keterangan for r in rows] == [
        "cash bertahap ke 1 dari Honda - CBR 150 - B 1234 ABC",
        "cash bertahap ke 2 dari Honda - CBR 150 - B 1234 ABC",
    ]


def test_overpaid_installment_warns(buat_pembelian, buat_penjualan):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(pembelian_id, jenis_pembayaran="kredit", dp=3_000_000, harga_bayar=None)

    result = bayar_cicilan(penjualan_id, {"jumlah_bayar": 10_000_000})

    assert result.data["lunas"] is True
    assert result.warnings == ["Pembayaran melebihi sisa tagihan sebesar Rp 1.000.000."]


def test_sold_unit_adjustment_adds_cost(seed, buat_pembelian, buat_penjualan, modal, fresh):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(pembelian_id)

    adjust_sold_unit(
        penjualan_id,
        {
            "jenis_update": "tambah",
            "nominal": "500.000",
            "reason": "Ganti ban",
            "sumber_dana_id": seed.company_b,
        },
    )

    penjualan = fresh("penjualans", penjualan_id)
    assert penjualan.harga_beli == 10_500_000
    assert penjualan.keuntungan == 1_500_000
    assert penjualan.keuntungan == penjualan.harga_jual - penjualan.harga_beli
    assert fresh("pembelian", pembelian_id).harga_final == 10_500_000
    assert modal(seed.company_b) == 49_500_000
    rows = store.select("pembukuan", company_id=seed.company_b, jenis="update_harga")
    assert [(r.debit, r.keterangan) for r in rows] == [(500_000, "Biaya Tambahan - B 1234 ABC - Ganti ban")]
    assert len(store.select("price_histories", penjualan_id=penjualan_id)) == 1


def test_sold_unit_reduction_posts_credit(seed, buat_pembelian, buat_penjualan, modal, fresh):
    penjualan_id = buat_penjualan(buat_pembelian())

    adjust_sold_unit(
        penjualan_id,
        {"jenis_update": "kurang", "nominal": 1_000_000, "reason": "Diskon dealer", "sumber_dana_id": seed.company_a},
    )

    assert fresh("penjualans", penjualan_id).keuntungan == 3_000_000
    rows = store.select("pembukuan", jenis="update_harga")
    assert [(r.debit, r.kredit) for r in rows] == [(0, 1_000_000)]
    assert modal(seed.company_a) == 103_000_000


def test_sold_unit_reduction_capped_at_80_percent(seed, buat_pembelian, buat_penjualan):
    penjualan_id = buat_penjualan(buat_pembelian())
    with pytest.raises(ValidationError, match="maksimal 80%"):
        adjust_sold_unit(
            penjualan_id,
            {"jenis_update": "kurang", "nominal": 9_000_000, "reason": "x", "sumber_dana_id": seed.company_a},
        )


def test_sold_unit_adjustment_requires_reason_and_completed_sale(seed, buat_pembelian, buat_penjualan):
    penjualan_id = buat_penjualan(buat_pembelian())
    with pytest.raises(ValidationError, match="Alasan"):
        adjust_sold_unit(penjualan_id, {"nominal": 100_000, "reason": " ", "sumber_dana_id": seed.company_a})

    booked_id = buat_penjualan(
        buat_pembelian(plat_nomor="B 9 XY"), jenis_pembayaran="kredit", dp=1_000_000, harga_bayar=None
    )
    with pytest.raises(InvalidTransition):
        adjust_sold_unit(booked_id, {"nominal": 100_000, "reason": "x", "sumber_dana_id": seed.company_a})


def test_edit_dp_alone_keeps_payment_consistent(seed, buat_pembelian, buat_penjualan, modal, fresh):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )

    result = update_penjualan(penjualan_id, {"dp": 4_000_000})

    penjualan = fresh("penjualans", penjualan_id)
    assert result.warnings == []
    assert penjualan.dp == 4_000_000
    assert penjualan.harga_bayar == 4_000_000
    assert penjualan.sisa_bayar == 8_000_000
    assert penjualan.status == "booked"
    assert [r.kredit for r in _ledger(pembelian_id, "penjualan")] == [4_000_000]
    assert modal(seed.company_a) == 94_000_000


def test_edit_after_installment_does_not_count_it_twice(seed, buat_pembelian, buat_penjualan, modal, fresh):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(pembelian_id, harga_bayar=10_000_000)
    bayar_cicilan(penjualan_id, {"jumlah_bayar": 1_000_000, "tanggal_bayar": "2025-02-10"})
    assert modal(seed.company_a) == 101_000_000

    update_penjualan(penjualan_id, {"nama_pembeli": "Budi Santoso"})

    penjualan = fresh("penjualans", penjualan_id)
    assert penjualan.harga_bayar == 11_000_000
    assert penjualan.sisa_bayar == 1_000_000
    assert penjualan.status == "booked"
    assert sum(r.kredit for r in _ledger(pembelian_id)) == 11_000_000
    assert modal(seed.company_a) == 101_000_000


def test_company_change_leaves_installment_capital_in_place(seed, buat_pembelian, buat_penjualan, modal):
    pembelian_id = buat_pembelian()
    penjualan_id = buat_penjualan(pembelian_id, harga_bayar=10_000_000)
    bayar_cicilan(penjualan_id, {"jumlah_bayar": 1_000_000, "tanggal_bayar": "2025-02-10"})

    update_penjualan(penjualan_id, {"company_id": seed.company_b})

    # 100jt - 10jt beli + 1jt cicilan; DP awal 10jt pindah ke B
    assert modal(seed.company_a) == 91_000_000
    assert modal(seed.company_b) == 60_000_000
    rows = _ledger(pembelian_id, "cicilan")
    assert [(r.company_id, r.kredit) for r in rows] == [(seed.company_a, 1_000_000)]


def test_delete_resale_keeps_ledger_of_cancelled_sale(seed, buat_pembelian, buat_penjualan):
    pembelian_id = buat_pembelian()
    pertama = buat_penjualan(
        pembelian_id, jenis_pembayaran="cash_bertahap", dp=3_000_000, harga_bayar=None
    )
    cancel_dp(pertama, {"policy": "full_forfeit", "reason": "Customer mundur"})
    kedua = buat_penjualan(pembelian_id, nama_pembeli="Andi")

    delete_penjualan(kedua)

    rows = _ledger(pembelian_id, "penjualan")
    assert [(r.penjualan_id, r.kredit) for r in rows] == [(pertama, 3_000_000)]
