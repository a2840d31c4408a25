import json

from showroom import store
from showroom.outbox import SecondarySteps, retry_pending


def test_failed_capital_update_is_parked(seed, buat_pembelian, gagalkan, monkeypatch, modal, qty):
    gagalkan("update_company_modal")

    pembelian_id = buat_pembelian()

    # data utama tetap tersimpan
    assert store.get("pembelian", pembelian_id) is not None
    assert qty(seed.jenis) == 1
    assert modal(seed.company_a) == 100_000_000
    pending = store.select("pending_effects", status="pending")
    assert len(pending) == 1
    assert pending[0].routine == "pembelian.create"
    op = json.loads(pending[0].operation)
    assert op["procedure"] == "update_company_modal"
    assert op["args"] == {"company_id": seed.company_a, "amount": -10_000_000}

    monkeypatch.undo()
    assert retry_pending() == (1, 0)
    assert modal(seed.company_a) == 90_000_000
    assert store.select("pending_effects", status="pending") == []
    done = store.select("pending_effects", status="done")
    assert done[0].attempts == 1
    assert done[0].resolved_at is not None


def test_warnings_are_returned_to_the_caller(seed, gagalkan):
    from showroom.pembelian import create_pembelian

    gagalkan("update_company_modal")
    result = create_pembelian(
        {
            "tanggal_pembelian": "2025-01-10",
            "divisi": "sport",
            "jenis_motor_id": seed.jenis,
            "plat_nomor": "B 99 ZZ",
            "harga_beli": 5_000_000,
            "sumber_dana_1_id": seed.company_a,
            "nominal_dana_1": 5_000_000,
        }
    )
    assert result.warnings == ["Update modal perusahaan gagal dan dicatat untuk dicoba ulang."]
    assert result.to_json()["success"] is True


def test_retry_keeps_failing_effect_pending(seed, gagalkan):
    gagalkan("increment_qty")
    steps = SecondarySteps("uji")
    assert steps.call("Tambah stok", "increment_qty", jenis_motor_id=seed.jenis) is False

    assert retry_pending() == (0, 1)
    effect = store.select("pending_effects")[0]
    assert effect.status == "pending"
    assert effect.attempts == 1
    assert "increment_qty" in effect.error


def test_cli_retries_pending_effects(seed, gagalkan, monkeypatch, runner, qty):
    gagalkan("increment_qty")
    SecondarySteps("uji").call("Tambah stok", "increment_qty", jenis_motor_id=seed.jenis)
    monkeypatch.undo()

    result = runner.invoke(args=["retry-pending-effects"])

    assert result.exit_code == 0
    assert "Berhasil: 1, masih gagal: 0" in result.output
    assert qty(seed.jenis) == 1
