from datetime import datetime

from showroom import db


class Company(db.Model):
    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)
    nama_perusahaan = db.Column(db.String(150), nullable=False)
    divisi = db.Column(db.String(50), nullable=False)
    modal = db.Column(db.BigInteger, nullable=False, default=0)
    nomor_rekening = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="active")
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f"<Company {self.nama_perusahaan}>"


class Cabang(db.Model):
    __tablename__ = "cabang"

    id = db.Column(db.Integer, primary_key=True)
    nama = db.Column(db.String(100), nullable=False)

    def __repr__(self):
        return f"<Cabang {self.nama}>"


class Brand(db.Model):
    __tablename__ = "brands"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)

    def __repr__(self):
        return f"<Brand {self.name}>"


class JenisMotor(db.Model):
    __tablename__ = "jenis_motor"

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=False)
    jenis_motor = db.Column(db.String(100), nullable=False)
    divisi = db.Column(db.String(50), nullable=True)
    qty = db.Column(db.Integer, nullable=False, default=0)

    brand = db.relationship("Brand", backref=db.backref("jenis_motor", lazy=True))

    def __repr__(self):
        return f"<JenisMotor {self.jenis_motor} qty={self.qty}>"


class Pembelian(db.Model):
    __tablename__ = "pembelian"

    id = db.Column(db.Integer, primary_key=True)
    tanggal_pembelian = db.Column(db.Date, nullable=False)
    divisi = db.Column(db.String(50), nullable=False)
    cabang_id = db.Column(db.Integer, db.ForeignKey("cabang.id"), nullable=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=False)
    jenis_motor_id = db.Column(db.Integer, db.ForeignKey("jenis_motor.id"), nullable=False)
    tahun = db.Column(db.Integer, nullable=True)
    warna = db.Column(db.String(50), nullable=True)
    kilometer = db.Column(db.Integer, nullable=True)
    plat_nomor = db.Column(db.String(20), nullable=False)
    tanggal_pajak = db.Column(db.Date, nullable=True)
    harga_beli = db.Column(db.BigInteger, nullable=False, default=0)
    # harga_beli + pajak + QC + biaya lain yang sudah dibukukan
    harga_final = db.Column(db.BigInteger, nullable=False, default=0)
    sumber_dana_1_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    nominal_dana_1 = db.Column(db.BigInteger, nullable=False, default=0)
    sumber_dana_2_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True)
    nominal_dana_2 = db.Column(db.BigInteger, nullable=False, default=0)
    keterangan = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="ready")
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    jenis_motor = db.relationship("JenisMotor")
    brand = db.relationship("Brand")
    cabang = db.relationship("Cabang")
    sumber_dana_1 = db.relationship("Company", foreign_keys=[sumber_dana_1_id])
    sumber_dana_2 = db.relationship("Company", foreign_keys=[sumber_dana_2_id])

    def funding(self):
        """Pasangan (company_id, nominal) untuk setiap sumber dana yang terisi."""
        pairs = [(self.sumber_dana_1_id, self.nominal_dana_1 or 0)]
        if self.sumber_dana_2_id and self.nominal_dana_2:
            pairs.append((self.sumber_dana_2_id, self.nominal_dana_2))
        return pairs

    @property
    def cost_basis(self):
        return self.harga_final if self.harga_final and self.harga_final > 0 else self.harga_beli

    def __repr__(self):
        return f"<Pembelian {self.plat_nomor} {self.status}>"


class Penjualan(db.Model):
    __tablename__ = "penjualans"

    id = db.Column(db.Integer, primary_key=True)
    tanggal = db.Column(db.Date, nullable=False)
    divisi = db.Column(db.String(50), nullable=False)
    cabang_id = db.Column(db.Integer, db.ForeignKey("cabang.id"), nullable=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True)
    jenis_id = db.Column(db.Integer, db.ForeignKey("jenis_motor.id"), nullable=True)
    pembelian_id = db.Column(db.Integer, db.ForeignKey("pembelian.id"), nullable=False)
    plat = db.Column(db.String(20), nullable=True)
    tahun = db.Column(db.Integer, nullable=True)
    kilometer = db.Column(db.Integer, nullable=True)
    warna = db.Column(db.String(50), nullable=True)
    nama_pembeli = db.Column(db.String(150), nullable=False)
    alamat_pembeli = db.Column(db.String(255), nullable=True)
    no_telepon_pembeli = db.Column(db.String(30), nullable=True)
    jenis_pembayaran = db.Column(db.String(30), nullable=False, default="cash_penuh")
    tukar_tambah = db.Column(db.Boolean, nullable=False, default=False)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    harga_jual = db.Column(db.BigInteger, nullable=False, default=0)
    harga_beli = db.Column(db.BigInteger, nullable=False, default=0)
    harga_bayar = db.Column(db.BigInteger, nullable=False, default=0)
    keuntungan = db.Column(db.BigInteger, nullable=False, default=0)
    dp = db.Column(db.BigInteger, nullable=False, default=0)
    sisa_bayar = db.Column(db.BigInteger, nullable=False, default=0)
    subsidi_ongkir = db.Column(db.BigInteger, nullable=False, default=0)
    titip_ongkir = db.Column(db.BigInteger, nullable=False, default=0)
    biaya_lain_lain = db.Column(db.BigInteger, nullable=False, default=0)
    keterangan_biaya_lain = db.Column(db.String(255), nullable=True)
    reason_update_harga = db.Column(db.String(255), nullable=True)
    catatan = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(30), nullable=False, default="booked")
    tanggal_lunas = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    pembelian = db.relationship("Pembelian", backref=db.backref("penjualans", lazy=True))
    company = db.relationship("Company")

    def __repr__(self):
        return f"<Penjualan {self.plat} {self.status}>"


class Pembukuan(db.Model):
    __tablename__ = "pembukuan"

    id = db.Column(db.Integer, primary_key=True)
    tanggal = db.Column(db.Date, nullable=False, index=True)
    divisi = db.Column(db.String(50), nullable=True)
    cabang_id = db.Column(db.Integer, db.ForeignKey("cabang.id"), nullable=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    pembelian_id = db.Column(db.Integer, db.ForeignKey("pembelian.id"), nullable=True, index=True)
    # tanpa foreign key: baris pembukuan dihapus setelah baris penjualannya
    penjualan_id = db.Column(db.Integer, nullable=True, index=True)
    jenis = db.Column(db.String(30), nullable=False, default="umum")
    keterangan = db.Column(db.Text, nullable=False)
    debit = db.Column(db.BigInteger, nullable=False, default=0)
    kredit = db.Column(db.BigInteger, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    company = db.relationship("Company")
    cabang = db.relationship("Cabang")


class PriceHistoryPembelian(db.Model):
    __tablename__ = "price_histories_pembelian"

    id = db.Column(db.Integer, primary_key=True)
    pembelian_id = db.Column(db.Integer, db.ForeignKey("pembelian.id"), nullable=False)
    jenis = db.Column(db.String(30), nullable=False, default="update_harga")
    harga_beli_lama = db.Column(db.BigInteger, nullable=False, default=0)
    harga_beli_baru = db.Column(db.BigInteger, nullable=False, default=0)
    harga_final_lama = db.Column(db.BigInteger, nullable=False, default=0)
    harga_final_baru = db.Column(db.BigInteger, nullable=False, default=0)
    biaya_pajak = db.Column(db.BigInteger, nullable=False, default=0)
    biaya_qc = db.Column(db.BigInteger, nullable=False, default=0)
    biaya_lain_lain = db.Column(db.BigInteger, nullable=False, default=0)
    keterangan_biaya_lain = db.Column(db.String(255), nullable=True)
    reason = db.Column(db.String(255), nullable=False)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True)
    tanggal_update = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class PriceHistory(db.Model):
    """Riwayat perubahan harga pada level penjualan."""

    __tablename__ = "price_histories"

    id = db.Column(db.Integer, primary_key=True)
    penjualan_id = db.Column(db.Integer, db.ForeignKey("penjualans.id", ondelete="CASCADE"), nullable=False)
    harga_jual_lama = db.Column(db.BigInteger, nullable=False, default=0)
    harga_jual_baru = db.Column(db.BigInteger, nullable=False, default=0)
    harga_beli_lama = db.Column(db.BigInteger, nullable=False, default=0)
    harga_beli_baru = db.Column(db.BigInteger, nullable=False, default=0)
    keuntungan_lama = db.Column(db.BigInteger, nullable=False, default=0)
    keuntungan_baru = db.Column(db.BigInteger, nullable=False, default=0)
    reason = db.Column(db.String(255), nullable=False)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True)
    tanggal_update = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class Cicilan(db.Model):
    __tablename__ = "cicilan"

    id = db.Column(db.Integer, primary_key=True)
    penjualan_id = db.Column(db.Integer, db.ForeignKey("penjualans.id", ondelete="CASCADE"), nullable=False)
    batch_ke = db.Column(db.Integer, nullable=False)
    tanggal_bayar = db.Column(db.Date, nullable=False)
    jumlah_bayar = db.Column(db.BigInteger, nullable=False)
    sisa_bayar = db.Column(db.BigInteger, nullable=False, default=0)
    jenis_pembayaran = db.Column(db.String(30), nullable=True)
    tujuan_pembayaran_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    keterangan = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class QcHistory(db.Model):
    __tablename__ = "qc_history"

    id = db.Column(db.Integer, primary_key=True)
    pembelian_id = db.Column(db.Integer, db.ForeignKey("pembelian.id"), nullable=False)
    tanggal_qc = db.Column(db.Date, nullable=False)
    jenis_qc = db.Column(db.String(100), nullable=False)
    total_pengeluaran = db.Column(db.BigInteger, nullable=False)
    keterangan = db.Column(db.String(255), nullable=True)
    sumber_dana_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class BiroJasa(db.Model):
    __tablename__ = "biro_jasa"

    id = db.Column(db.Integer, primary_key=True)
    tanggal = db.Column(db.Date, nullable=False)
    divisi = db.Column(db.String(50), nullable=True)
    cabang_id = db.Column(db.Integer, db.ForeignKey("cabang.id"), nullable=True)
    # identitas kendaraan sengaja teks bebas, tidak terhubung ke pembelian
    plat_nomor = db.Column(db.String(20), nullable=True)
    jenis_motor = db.Column(db.String(100), nullable=True)
    warna = db.Column(db.String(50), nullable=True)
    tahun = db.Column(db.Integer, nullable=True)
    nama_customer = db.Column(db.String(150), nullable=False)
    no_telepon = db.Column(db.String(30), nullable=True)
    jenis_pengurusan = db.Column(db.String(100), nullable=False)
    keterangan = db.Column(db.Text, nullable=True)
    estimasi_biaya = db.Column(db.BigInteger, nullable=False, default=0)
    dp = db.Column(db.BigInteger, nullable=False, default=0)
    total_bayar = db.Column(db.BigInteger, nullable=False, default=0)
    sisa = db.Column(db.BigInteger, nullable=False, default=0)
    rekening_tujuan_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True)
    dp_vendor = db.Column(db.BigInteger, nullable=False, default=0)
    dp_vendor_date = db.Column(db.Date, nullable=True)
    dp_vendor_company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True)
    biaya_modal = db.Column(db.BigInteger, nullable=False, default=0)
    keuntungan = db.Column(db.BigInteger, nullable=False, default=0)
    status = db.Column(db.String(30), nullable=False, default="Dalam Proses")
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    cicilan = db.relationship("BiroJasaCicilan", backref="biro_jasa", lazy=True, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<BiroJasa {self.jenis_pengurusan} {self.plat_nomor}>"


class BiroJasaCicilan(db.Model):
    __tablename__ = "biro_jasa_cicilan"

    id = db.Column(db.Integer, primary_key=True)
    biro_jasa_id = db.Column(db.Integer, db.ForeignKey("biro_jasa.id", ondelete="CASCADE"), nullable=False)
    tanggal_bayar = db.Column(db.Date, nullable=False)
    jumlah_bayar = db.Column(db.BigInteger, nullable=False)
    tujuan_pembayaran_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    keterangan = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class ModalHistory(db.Model):
    __tablename__ = "modal_history"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    jumlah = db.Column(db.BigInteger, nullable=False)
    keterangan = db.Column(db.String(255), nullable=True)
    tanggal = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class PendingEffect(db.Model):
    """Langkah sekunder yang gagal dan menunggu dijalankan ulang."""

    __tablename__ = "pending_effects"

    id = db.Column(db.Integer, primary_key=True)
    routine = db.Column(db.String(60), nullable=False)
    label = db.Column(db.String(255), nullable=False)
    operation = db.Column(db.Text, nullable=False)
    error = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    resolved_at = db.Column(db.DateTime, nullable=True)
