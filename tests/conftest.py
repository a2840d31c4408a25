# tests/conftest.py
import os
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

# --- Paksa environment test yang aman ---
os.environ.setdefault("SECRET_KEY", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
# Gunakan SQLite in-memory agar tidak butuh MySQL saat CI
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"

# Kosongkan env MYSQL_* supaya kode tidak memaksa DSN MySQL
for k in ("MYSQL_HOST", "MYSQL_PORT", "MYSQL_USER", "MYSQL_PASSWORD", "MYSQL_DATABASE"):
    os.environ.setdefault(k, "")

from showroom import create_app, db, store  # noqa: E402
from showroom.models import Brand, Cabang, Company, JenisMotor  # noqa: E402
from showroom.pembelian import create_pembelian  # noqa: E402
from showroom.penjualan import create_penjualan  # noqa: E402


class TestingConfig:
    TESTING = True
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }


@pytest.fixture()
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def runner(app):
    return app.test_cli_runner()


@pytest.fixture()
def seed(app):
    company_a = Company(nama_perusahaan="PT Sumber Makmur", divisi="sport", modal=100_000_000)
    company_b = Company(nama_perusahaan="CV Maju Jaya", divisi="sport", modal=50_000_000)
    cabang = Cabang(nama="Pusat")
    brand = Brand(name="Honda")
    db.session.add_all([company_a, company_b, cabang, brand])
    db.session.flush()
    jenis = JenisMotor(brand_id=brand.id, jenis_motor="CBR 150", divisi="sport", qty=0)
    jenis_lain = JenisMotor(brand_id=brand.id, jenis_motor="Vario 125", divisi="sport", qty=0)
    db.session.add_all([jenis, jenis_lain])
    db.session.commit()
    return SimpleNamespace(
        company_a=company_a.id,
        company_b=company_b.id,
        cabang=cabang.id,
        brand=brand.id,
        jenis=jenis.id,
        jenis_lain=jenis_lain.id,
    )


@pytest.fixture()
def fresh():
    """Ambil ulang baris dari database, bukan dari identity map."""

    def _fresh(table, row_id):
        db.session.expire_all()
        return store.get(table, row_id)

    return _fresh


@pytest.fixture()
def modal(fresh):
    return lambda company_id: fresh("companies", company_id).modal


@pytest.fixture()
def qty(fresh):
    return lambda jenis_motor_id: fresh("jenis_motor", jenis_motor_id).qty


@pytest.fixture()
def buat_pembelian(seed):
    def _buat(**overrides):
        data = {
            "tanggal_pembelian": "2025-01-10",
            "divisi": "sport",
            "cabang_id": seed.cabang,
            "jenis_motor_id": seed.jenis,
            "plat_nomor": "B 1234 ABC",
            "harga_beli": 10_000_000,
            "sumber_dana_1_id": seed.company_a,
            "nominal_dana_1": 10_000_000,
        }
        data.update(overrides)
        return create_pembelian(data).data["id"]

    return _buat


@pytest.fixture()
def buat_penjualan(seed):
    def _buat(pembelian_id, **overrides):
        data = {
            "tanggal": "2025-02-01",
            "pembelian_id": pembelian_id,
            "company_id": seed.company_a,
            "nama_pembeli": "Budi",
            "jenis_pembayaran": "cash_penuh",
            "harga_jual": 12_000_000,
            "harga_bayar": 12_000_000,
        }
        data.update(overrides)
        return create_penjualan(data).data["id"]

    return _buat


@pytest.fixture()
def gagalkan(monkeypatch):
    """Buat prosedur database tertentu selalu gagal."""

    def _gagalkan(procedure):
        def boom(**_kwargs):
            raise OperationalError("UPDATE", {}, Exception("koneksi database putus"))

        monkeypatch.setitem(store.PROCEDURES, procedure, boom)

    return _gagalkan
