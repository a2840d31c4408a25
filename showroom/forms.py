from flask_wtf import FlaskForm
from wtforms import BooleanField, Field, StringField
from wtforms.validators import AnyOf, InputRequired, Optional
from wtforms.widgets import TextInput

from showroom.money import parse_rupiah
from showroom.time_utils import format_tanggal, parse_tanggal


class RupiahField(Field):
    """Nominal rupiah; terima '12.000.000', 'Rp 12.000.000' atau angka."""

    widget = TextInput()

    def _value(self):
        if self.data is None:
            return ""
        return "{:,.0f}".format(self.data).replace(",", ".")

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        try:
            self.data = parse_rupiah(valuelist[0])
        except ValueError as exc:
            self.data = None
            raise ValueError(str(exc)) from exc


class TanggalField(Field):
    """Tanggal dd/mm/yyyy (tampilan) atau yyyy-mm-dd (ISO)."""

    widget = TextInput()

    def _value(self):
        return format_tanggal(self.data) if self.data else ""

    def process_formdata(self, valuelist):
        if not valuelist or valuelist[0] in (None, ""):
            return
        try:
            self.data = parse_tanggal(valuelist[0])
        except ValueError as exc:
            self.data = None
            raise ValueError(str(exc)) from exc


class IdField(Field):
    """Id relasi (perusahaan, cabang, jenis motor). Kosong/0 berarti tidak dipilih."""

    widget = TextInput()

    def _value(self):
        return str(self.data) if self.data else ""

    def process_formdata(self, valuelist):
        if not valuelist or valuelist[0] in (None, "", 0, "0"):
            return
        try:
            self.data = int(valuelist[0])
        except (TypeError, ValueError):
            self.data = None
            raise ValueError("Pilihan tidak valid.") from None


class ShowroomForm(FlaskForm):
    def payload(self):
        """Hanya field yang benar-benar dikirim, supaya edit tidak menimpa data lama."""
        return {
            name: field.data
            for name, field in self._fields.items()
            if name != "csrf_token" and field.raw_data
        }

    def error_message(self):
        messages = []
        for name, errors in self.errors.items():
            label = self._fields[name].label.text if name in self._fields else name
            messages.extend(f"{label}: {error}" for error in errors)
        return " ".join(messages) or "Data tidak valid."


class PembelianForm(ShowroomForm):
    tanggal_pembelian = TanggalField("Tanggal Pembelian", validators=[InputRequired()])
    divisi = StringField("Divisi", validators=[InputRequired()])
    cabang_id = IdField("Cabang")
    brand_id = IdField("Brand")
    jenis_motor_id = IdField("Jenis Motor", validators=[InputRequired()])
    tahun = IdField("Tahun")
    warna = StringField("Warna")
    kilometer = RupiahField("Kilometer")
    plat_nomor = StringField("Plat Nomor", validators=[InputRequired()])
    tanggal_pajak = TanggalField("Tanggal Pajak")
    harga_beli = RupiahField("Harga Beli", validators=[InputRequired()])
    sumber_dana_1_id = IdField("Sumber Dana 1", validators=[InputRequired()])
    nominal_dana_1 = RupiahField("Nominal Dana 1", validators=[InputRequired()])
    sumber_dana_2_id = IdField("Sumber Dana 2")
    nominal_dana_2 = RupiahField("Nominal Dana 2")
    keterangan = StringField("Keterangan")


class PembelianEditForm(PembelianForm):
    tanggal_pembelian = TanggalField("Tanggal Pembelian", validators=[Optional()])
    divisi = StringField("Divisi", validators=[Optional()])
    jenis_motor_id = IdField("Jenis Motor", validators=[Optional()])
    plat_nomor = StringField("Plat Nomor", validators=[Optional()])
    harga_beli = RupiahField("Harga Beli", validators=[Optional()])
    sumber_dana_1_id = IdField("Sumber Dana 1", validators=[Optional()])
    nominal_dana_1 = RupiahField("Nominal Dana 1", validators=[Optional()])


class UpdateHargaPembelianForm(ShowroomForm):
    harga_beli = RupiahField("Harga Beli", validators=[InputRequired()])
    biaya_pajak = RupiahField("Biaya Pajak")
    biaya_qc = RupiahField("Biaya QC")
    biaya_lain_lain = RupiahField("Biaya Lain-lain")
    keterangan_biaya_lain = StringField("Keterangan Biaya Lain")
    reason = StringField("Alasan", validators=[InputRequired()])
    company_id = IdField("Sumber Dana")
    tanggal_update = TanggalField("Tanggal Update")


class QcForm(ShowroomForm):
    tanggal_qc = TanggalField("Tanggal QC", validators=[InputRequired()])
    jenis_qc = StringField("Jenis QC", validators=[InputRequired()])
    total_pengeluaran = RupiahField("Total Pengeluaran", validators=[InputRequired()])
    keterangan = StringField("Keterangan")
    sumber_dana_id = IdField("Sumber Dana")


class PenjualanForm(ShowroomForm):
    tanggal = TanggalField("Tanggal", validators=[InputRequired()])
    pembelian_id = IdField("Unit", validators=[InputRequired()])
    company_id = IdField("Perusahaan", validators=[InputRequired()])
    divisi = StringField("Divisi")
    cabang_id = IdField("Cabang")
    nama_pembeli = StringField("Nama Pembeli", validators=[InputRequired()])
    alamat_pembeli = StringField("Alamat Pembeli")
    no_telepon_pembeli = StringField("No. Telepon")
    jenis_pembayaran = StringField(
        "Jenis Pembayaran",
        validators=[Optional(), AnyOf(["cash_penuh", "cash_bertahap", "kredit"])],
    )
    tukar_tambah = BooleanField("Tukar Tambah")
    harga_jual = RupiahField("Harga Jual", validators=[InputRequired()])
    harga_bayar = RupiahField("Harga Bayar")
    dp = RupiahField("DP")
    subsidi_ongkir = RupiahField("Subsidi Ongkir")
    titip_ongkir = RupiahField("Titip Ongkir")
    status = StringField("Status")
    catatan = StringField("Catatan")


class PenjualanEditForm(PenjualanForm):
    tanggal = TanggalField("Tanggal", validators=[Optional()])
    pembelian_id = IdField("Unit", validators=[Optional()])
    company_id = IdField("Perusahaan", validators=[Optional()])
    nama_pembeli = StringField("Nama Pembeli", validators=[Optional()])
    harga_jual = RupiahField("Harga Jual", validators=[Optional()])


class DpCancellationForm(ShowroomForm):
    policy = StringField(
        "Jenis Pembatalan",
        validators=[InputRequired(), AnyOf(["full_forfeit", "partial_refund"])],
    )
    reason = StringField("Alasan", validators=[InputRequired()])
    refund_amount = RupiahField("Jumlah Pengembalian")
    company_id = IdField("Sumber Dana Pengembalian")
    keterangan = StringField("Keterangan")
    tanggal = TanggalField("Tanggal")


class SoldUpdateHargaForm(ShowroomForm):
    jenis_update = StringField("Jenis Update", validators=[Optional(), AnyOf(["tambah", "kurang"])])
    nominal = RupiahField("Nominal", validators=[InputRequired()])
    reason = StringField("Alasan", validators=[InputRequired()])
    sumber_dana_id = IdField("Sumber Dana", validators=[InputRequired()])
    tanggal_update = TanggalField("Tanggal Update")


class BookedUpdateHargaForm(ShowroomForm):
    biaya_qc = RupiahField("Biaya QC")
    biaya_pajak = RupiahField("Biaya Pajak")
    biaya_lain_lain = RupiahField("Biaya Lain-lain")
    keterangan_biaya_lain = StringField("Keterangan Biaya Lain")
    reason = StringField("Alasan", validators=[InputRequired()])
    sumber_dana_id = IdField("Sumber Dana")
    tanggal_update = TanggalField("Tanggal Update")


class CicilanForm(ShowroomForm):
    jumlah_bayar = RupiahField("Jumlah Bayar", validators=[InputRequired()])
    tanggal_bayar = TanggalField("Tanggal Bayar")
    tujuan_pembayaran_id = IdField("Rekening Tujuan")
    keterangan = StringField("Keterangan")


class BiroJasaForm(ShowroomForm):
    tanggal = TanggalField("Tanggal", validators=[InputRequired()])
    divisi = StringField("Divisi")
    cabang_id = IdField("Cabang")
    plat_nomor = StringField("Plat Nomor")
    jenis_motor = StringField("Jenis Motor")
    warna = StringField("Warna")
    tahun = IdField("Tahun")
    nama_customer = StringField("Nama Customer", validators=[InputRequired()])
    no_telepon = StringField("No. Telepon")
    jenis_pengurusan = StringField("Jenis Pengurusan", validators=[InputRequired()])
    keterangan = StringField("Keterangan")
    estimasi_biaya = RupiahField("Estimasi Biaya")
    dp = RupiahField("DP")
    rekening_tujuan_id = IdField("Rekening Tujuan")


class VendorDpForm(ShowroomForm):
    dp_vendor = RupiahField("DP Vendor", validators=[InputRequired()])
    company_id = IdField("Sumber Dana", validators=[InputRequired()])
    tanggal = TanggalField("Tanggal")


class BiroJasaBayarForm(CicilanForm):
    pass


class KeuntunganForm(ShowroomForm):
    biaya_modal = RupiahField("Biaya Modal", validators=[InputRequired()])
    sumber_dana_id = IdField("Sumber Dana", validators=[InputRequired()])
    tanggal = TanggalField("Tanggal")


class BatalForm(ShowroomForm):
    reason = StringField("Alasan", validators=[InputRequired()])


class ModalReductionForm(ShowroomForm):
    jumlah = RupiahField("Jumlah", validators=[InputRequired()])
    keterangan = StringField("Keterangan", validators=[InputRequired()])
    tanggal = TanggalField("Tanggal")
