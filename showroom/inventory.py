from showroom.status import StatusPembelian, transition


def check_unit(pembelian, target):
    """Validasi perpindahan status unit sebelum ada data yang ditulis."""
    return transition(pembelian.status, StatusPembelian(target))


def add_stock(steps, jenis_motor_id):
    return steps.call("Penambahan stok", "increment_qty", jenis_motor_id=jenis_motor_id)


def remove_stock(steps, jenis_motor_id):
    return steps.call("Pengurangan stok", "decrement_qty", jenis_motor_id=jenis_motor_id)


def mark_unit(steps, pembelian_id, status):
    return steps.update(
        "Update status pembelian",
        "pembelian",
        {"status": StatusPembelian(status).value},
        id=pembelian_id,
    )


def reserve_unit(steps, pembelian_id, jenis_motor_id, status):
    """Unit keluar dari stok: qty -1 lalu status booked/sold."""
    remove_stock(steps, jenis_motor_id)
    mark_unit(steps, pembelian_id, status)


def release_unit(steps, pembelian_id, jenis_motor_id):
    """Unit kembali tersedia: qty +1 lalu status ready."""
    add_stock(steps, jenis_motor_id)
    mark_unit(steps, pembelian_id, StatusPembelian.READY)


def describe_unit(pembelian):
    """(brand, jenis motor, plat) untuk teks keterangan pembukuan."""
    brand = pembelian.brand.name if pembelian.brand else "-"
    jenis = pembelian.jenis_motor.jenis_motor if pembelian.jenis_motor else "-"
    return brand, jenis, pembelian.plat_nomor
