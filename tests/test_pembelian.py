import pytest

from showroom import store
from showroom.errors import NotFoundError, ValidationError
from showroom.pembelian import create_pembelian, delete_pembelian, update_pembelian


def _data(seed, **overrides):
    data = {
        "tanggal_pembelian": "10/01/2025",
        "divisi": "sport",
        "jenis_motor_id": seed.jenis,
        "plat_nomor": "b 1234 abc",
        "harga_beli": "10.000.000",
        "sumber_dana_1_id": seed.company_a,
        "nominal_dana_1": "6.000.000",
        "sumber_dana_2_id": seed.company_b,
        "nominal_dana_2": "4.000.000",
        "keterangan": "Unit tukar tambah",
    }
    data.update(overrides)
    return data


def test_create_pembelian_posts_stock_capital_and_ledger(seed, modal, qty, fresh):
    result = create_pembelian(_data(seed))

    assert result.warnings == []
    pembelian = fresh("pembelian", result.data["id"])
    assert pembelian.plat_nomor == "B 1234 ABC"
    assert pembelian.status == "ready"
    assert pembelian.harga_final == 10_000_000
    assert qty(seed.jenis) == 1
    assert modal(seed.company_a) == 94_000_000
    assert modal(seed.company_b) == 46_000_000

    rows = store.select("pembukuan", pembelian_id=pembelian.id)
    assert [(r.company_id, r.debit, r.kredit) for r in rows] == [
        (seed.company_a, 6_000_000, 0),
        (seed.company_b, 4_000_000, 0),
    ]
    assert rows[1].keterangan == "Pembelian motor B 1234 ABC - Unit tukar tambah (Sumber Dana 2)"


def test_funding_total_must_match_harga_beli(seed, modal, qty):
    with pytest.raises(ValidationError, match="harus sama dengan harga beli"):
        create_pembelian(_data(seed, nominal_dana_2="3.000.000"))

    assert store.select("pembelian") == []
    assert store.select("pembukuan") == []
    assert qty(seed.jenis) == 0
    assert modal(seed.company_a) == 100_000_000


def test_funding_company_must_have_enough_modal(seed):
    data = _data(
        seed,
        harga_beli=60_000_000,
        nominal_dana_1=0,
        sumber_dana_1_id=seed.company_b,
        sumber_dana_2_id=None,
        nominal_dana_2=0,
    )
    data["nominal_dana_1"] = 60_000_000
    with pytest.raises(ValidationError, match="tidak mencukupi"):
        create_pembelian(data)


def test_unknown_jenis_motor_is_rejected(seed):
    with pytest.raises(NotFoundError):
        create_pembelian(_data(seed, jenis_motor_id=999))


def test_same_company_twice_is_rejected(seed):
    with pytest.raises(ValidationError, match="tidak boleh perusahaan yang sama"):
        create_pembelian(_data(seed, sumber_dana_2_id=seed.company_a))


def test_capital_round_trip_on_delete(seed, modal, qty):
    pembelian_id = create_pembelian(_data(seed)).data["id"]

    result = delete_pembelian(pembelian_id)

    assert result.warnings == []
    assert store.get("pembelian", pembelian_id) is None
    assert store.select("pembukuan", pembelian_id=pembelian_id) == []
    assert qty(seed.jenis) == 0
    assert modal(seed.company_a) == 100_000_000
    assert modal(seed.company_b) == 50_000_000


def test_delete_blocked_when_sale_exists(buat_pembelian, buat_penjualan):
    pembelian_id = buat_pembelian()
    buat_penjualan(pembelian_id)

    with pytest.raises(ValidationError, match="sudah memiliki data penjualan"):
        delete_pembelian(pembelian_id)


def test_update_funding_moves_capital_between_companies(seed, buat_pembelian, modal):
    pembelian_id = buat_pembelian()
    assert modal(seed.company_a) == 90_000_000

    update_pembelian(
        pembelian_id,
        {"sumber_dana_1_id": seed.company_b, "nominal_dana_1": 10_000_000},
    )

    assert modal(seed.company_a) == 100_000_000
    assert modal(seed.company_b) == 40_000_000
    rows = store.select("pembukuan", pembelian_id=pembelian_id, jenis="pembelian")
    assert [(r.company_id, r.debit) for r in rows] == [(seed.company_b, 10_000_000)]


def test_update_jenis_motor_moves_stock(seed, buat_pembelian, qty):
    pembelian_id = buat_pembelian()

    update_pembelian(pembelian_id, {"jenis_motor_id": seed.jenis_lain, "warna": "Merah"})

    assert qty(seed.jenis) == 0
    assert qty(seed.jenis_lain) == 1
    assert store.get("pembelian", pembelian_id).warna == "Merah"


def test_update_descriptive_fields_keeps_money_untouched(seed, buat_pembelian, modal):
    pembelian_id = buat_pembelian()

    result = update_pembelian(pembelian_id, {"keterangan": "Servis ringan", "kilometer": 12000})

    assert result.warnings == []
    assert modal(seed.company_a) == 90_000_000
    assert len(store.select("pembukuan", pembelian_id=pembelian_id)) == 1


def test_update_harga_blocked_when_unit_booked(seed, buat_pembelian, buat_penjualan):
    pembelian_id = buat_pembelian()
    buat_penjualan(pembelian_id, jenis_pembayaran="kredit", dp=2_000_000, harga_bayar=None)

    with pytest.raises(ValidationError, match="sudah dibooking"):
        update_pembelian(pembelian_id, {"harga_beli": 9_000_000, "nominal_dana_1": 9_000_000})
