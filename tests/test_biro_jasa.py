import pytest

from showroom import store
from showroom.biro_jasa import (
    batal_biro_jasa,
    bayar_biro_jasa,
    catat_keuntungan,
    create_biro_jasa,
    input_dp_vendor,
)
from showroom.errors import InvalidTransition, ValidationError


@pytest.fixture()
def kasus(seed):
    result = create_biro_jasa(
        {
            "tanggal": "2025-03-01",
            "nama_customer": "Siti",
            "jenis_pengurusan": "Balik Nama",
            "plat_nomor": "d 4321 xy",
            "estimasi_biaya": 1_500_000,
            "dp": 500_000,
            "rekening_tujuan_id": seed.company_a,
        }
    )
    return result.data["id"]


def test_create_posts_dp_credit(seed, kasus, modal, fresh):
    case = fresh("biro_jasa", kasus)
    assert case.status == "Dalam Proses"
    assert case.sisa == 1_000_000
    assert case.total_bayar == 500_000
    assert modal(seed.company_a) == 100_500_000
    rows = store.select("pembukuan", jenis="biro_jasa")
    assert [(r.kredit, r.keterangan) for r in rows] == [(500_000, "DP Biro Jasa - Balik Nama - D 4321 XY")]


def test_dp_requires_rekening(seed):
    with pytest.raises(ValidationError, match="Rekening tujuan"):
        create_biro_jasa({"nama_customer": "A", "jenis_pengurusan": "STNK", "estimasi_biaya": 100, "dp": 50})


def test_vendor_dp_is_cash_out(seed, kasus, modal, fresh):
    input_dp_vendor(kasus, {"dp_vendor": 300_000, "company_id": seed.company_b, "tanggal": "2025-03-02"})

    case = fresh("biro_jasa", kasus)
    assert case.dp_vendor == 300_000
    assert case.dp_vendor_date.isoformat() == "2025-03-02"
    assert modal(seed.company_b) == 49_700_000
    rows = store.select("pembukuan", company_id=seed.company_b)
    assert [(r.debit, r.keterangan) for r in rows] == [(300_000, "DP Vendor Biro Jasa - D 4321 XY")]

    with pytest.raises(ValidationError, match="sudah pernah"):
        input_dp_vendor(kasus, {"dp_vendor": 100_000, "company_id": seed.company_b})


def test_vendor_dp_must_be_positive(seed, kasus):
    with pytest.raises(ValidationError, match="lebih dari 0"):
        input_dp_vendor(kasus, {"dp_vendor": 0, "company_id": seed.company_b})


def test_payment_completes_case(seed, kasus, modal, fresh):
    result = bayar_biro_jasa(kasus, {"jumlah_bayar": "1.000.000", "tanggal_bayar": "2025-03-05"})

    case = fresh("biro_jasa", kasus)
    assert result.data["status"] == "Selesai"
    assert case.status == "Selesai"
    assert case.total_bayar == 1_500_000
    assert case.sisa == 0
    assert len(store.select("biro_jasa_cicilan", biro_jasa_id=kasus)) == 1
    assert modal(seed.company_a) == 101_500_000

    with pytest.raises(ValidationError, match="tidak bisa diproses"):
        bayar_biro_jasa(kasus, {"jumlah_bayar": 1})


def test_partial_payment_keeps_case_open(kasus, fresh):
    bayar_biro_jasa(kasus, {"jumlah_bayar": 400_000})

    case = fresh("biro_jasa", kasus)
    assert case.status == "Dalam Proses"
    assert case.sisa == 600_000


def test_keuntungan_books_remaining_vendor_cost(seed, kasus, modal, fresh):
    input_dp_vendor(kasus, {"dp_vendor": 300_000, "company_id": seed.company_b})

    result = catat_keuntungan(kasus, {"biaya_modal": 1_000_000, "sumber_dana_id": seed.company_b})

    assert result.data["keuntungan"] == 500_000
    assert fresh("biro_jasa", kasus).keuntungan == 500_000
    # 300rb DP vendor + 700rb pelunasan
    assert modal(seed.company_b) == 49_000_000


def test_cancel_closes_the_case(kasus, fresh):
    batal_biro_jasa(kasus, {"reason": "Dokumen tidak lengkap"})

    case = fresh("biro_jasa", kasus)
    assert case.status == "Batal"
    assert case.keterangan.endswith("[BATAL] Dokumen tidak lengkap")
    with pytest.raises(ValidationError, match="tidak bisa diproses"):
        bayar_biro_jasa(kasus, {"jumlah_bayar": 100_000})


def test_cancel_requires_reason(kasus):
    with pytest.raises(ValidationError, match="Alasan pembatalan"):
        batal_biro_jasa(kasus, {"reason": "  "})


def test_completed_case_cannot_be_cancelled(kasus):
    bayar_biro_jasa(kasus, {"jumlah_bayar": 1_000_000})

    with pytest.raises(InvalidTransition):
        batal_biro_jasa(kasus, {"reason": "berubah pikiran"})


def test_vendor_dp_allowed_after_customer_paid_in_full(seed, modal, fresh):
    case_id = create_biro_jasa(
        {
            "tanggal": "2025-03-01",
            "nama_customer": "Rudi",
            "jenis_pengurusan": "STNK",
            "estimasi_biaya": 400_000,
            "dp": 400_000,
            "rekening_tujuan_id": seed.company_a,
        }
    ).data["id"]
    assert fresh("biro_jasa", case_id).status == "Selesai"

    input_dp_vendor(case_id, {"dp_vendor": 250_000, "company_id": seed.company_b})

    case = fresh("biro_jasa", case_id)
    assert case.status == "Selesai"
    assert case.dp_vendor == 250_000
    assert modal(seed.company_b) == 49_750_000


def test_vendor_dp_refused_on_cancelled_case(seed, kasus):
    batal_biro_jasa(kasus, {"reason": "Dokumen tidak lengkap"})

    with pytest.raises(ValidationError, match="dibatalkan"):
        input_dp_vendor(kasus, {"dp_vendor": 100_000, "company_id": seed.company_b})
