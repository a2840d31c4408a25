"""create showroom tables

Revision ID: 0001_showroom_baseline
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_showroom_baseline'
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP'))


def _money(name, nullable=False):
    return sa.Column(name, sa.BigInteger(), nullable=nullable, server_default='0')


def upgrade():
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nama_perusahaan', sa.String(length=150), nullable=False),
        sa.Column('divisi', sa.String(length=50), nullable=False),
        _money('modal'),
        sa.Column('nomor_rekening', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        _created_at(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'cabang',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nama', sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'brands',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'jenis_motor',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('brand_id', sa.Integer(), nullable=False),
        sa.Column('jenis_motor', sa.String(length=100), nullable=False),
        sa.Column('divisi', sa.String(length=50), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'pembelian',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tanggal_pembelian', sa.Date(), nullable=False),
        sa.Column('divisi', sa.String(length=50), nullable=False),
        sa.Column('cabang_id', sa.Integer(), nullable=True),
        sa.Column('brand_id', sa.Integer(), nullable=False),
        sa.Column('jenis_motor_id', sa.Integer(), nullable=False),
        sa.Column('tahun', sa.Integer(), nullable=True),
        sa.Column('warna', sa.String(length=50), nullable=True),
        sa.Column('kilometer', sa.Integer(), nullable=True),
        sa.Column('plat_nomor', sa.String(length=20), nullable=False),
        sa.Column('tanggal_pajak', sa.Date(), nullable=True),
        _money('harga_beli'),
        _money('harga_final'),
        sa.Column('sumber_dana_1_id', sa.Integer(), nullable=False),
        _money('nominal_dana_1'),
        sa.Column('sumber_dana_2_id', sa.Integer(), nullable=True),
        _money('nominal_dana_2'),
        sa.Column('keterangan', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='ready'),
        _created_at(),
        sa.ForeignKeyConstraint(['cabang_id'], ['cabang.id']),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id']),
        sa.ForeignKeyConstraint(['jenis_motor_id'], ['jenis_motor.id']),
        sa.ForeignKeyConstraint(['sumber_dana_1_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['sumber_dana_2_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'penjualans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tanggal', sa.Date(), nullable=False),
        sa.Column('divisi', sa.String(length=50), nullable=False),
        sa.Column('cabang_id', sa.Integer(), nullable=True),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('jenis_id', sa.Integer(), nullable=True),
        sa.Column('pembelian_id', sa.Integer(), nullable=False),
        sa.Column('plat', sa.String(length=20), nullable=True),
        sa.Column('tahun', sa.Integer(), nullable=True),
        sa.Column('kilometer', sa.Integer(), nullable=True),
        sa.Column('warna', sa.String(length=50), nullable=True),
        sa.Column('nama_pembeli', sa.String(length=150), nullable=False),
        sa.Column('alamat_pembeli', sa.String(length=255), nullable=True),
        sa.Column('no_telepon_pembeli', sa.String(length=30), nullable=True),
        sa.Column('jenis_pembayaran', sa.String(length=30), nullable=False, server_default='cash_penuh'),
        sa.Column('tukar_tambah', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('company_id', sa.Integer(), nullable=False),
        _money('harga_jual'),
        _money('harga_beli'),
        _money('harga_bayar'),
        _money('keuntungan'),
        _money('dp'),
        _money('sisa_bayar'),
        _money('subsidi_ongkir'),
        _money('titip_ongkir'),
        _money('biaya_lain_lain'),
        sa.Column('keterangan_biaya_lain', sa.String(length=255), nullable=True),
        sa.Column('reason_update_harga', sa.String(length=255), nullable=True),
        sa.Column('catatan', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='booked'),
        sa.Column('tanggal_lunas', sa.Date(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['cabang_id'], ['cabang.id']),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id']),
        sa.ForeignKeyConstraint(['jenis_id'], ['jenis_motor.id']),
        sa.ForeignKeyConstraint(['pembelian_id'], ['pembelian.id']),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'pembukuan',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tanggal', sa.Date(), nullable=False),
        sa.Column('divisi', sa.String(length=50), nullable=True),
        sa.Column('cabang_id', sa.Integer(), nullable=True),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('pembelian_id', sa.Integer(), nullable=True),
        sa.Column('penjualan_id', sa.Integer(), nullable=True),
        sa.Column('jenis', sa.String(length=30), nullable=False, server_default='umum'),
        sa.Column('keterangan', sa.Text(), nullable=False),
        _money('debit'),
        _money('kredit'),
        _created_at(),
        sa.ForeignKeyConstraint(['cabang_id'], ['cabang.id']),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['pembelian_id'], ['pembelian.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_pembukuan_tanggal', 'pembukuan', ['tanggal'])
    op.create_index('ix_pembukuan_pembelian_id', 'pembukuan', ['pembelian_id'])
    op.create_index('ix_pembukuan_penjualan_id', 'pembukuan', ['penjualan_id'])
    op.create_table(
        'price_histories_pembelian',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pembelian_id', sa.Integer(), nullable=False),
        sa.Column('jenis', sa.String(length=30), nullable=False, server_default='update_harga'),
        _money('harga_beli_lama'),
        _money('harga_beli_baru'),
        _money('harga_final_lama'),
        _money('harga_final_baru'),
        _money('biaya_pajak'),
        _money('biaya_qc'),
        _money('biaya_lain_lain'),
        sa.Column('keterangan_biaya_lain', sa.String(length=255), nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=True),
        sa.Column('tanggal_update', sa.Date(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['pembelian_id'], ['pembelian.id']),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'price_histories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('penjualan_id', sa.Integer(), nullable=False),
        _money('harga_jual_lama'),
        _money('harga_jual_baru'),
        _money('harga_beli_lama'),
        _money('harga_beli_baru'),
        _money('keuntungan_lama'),
        _money('keuntungan_baru'),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=True),
        sa.Column('tanggal_update', sa.Date(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['penjualan_id'], ['penjualans.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'cicilan',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('penjualan_id', sa.Integer(), nullable=False),
        sa.Column('batch_ke', sa.Integer(), nullable=False),
        sa.Column('tanggal_bayar', sa.Date(), nullable=False),
        sa.Column('jumlah_bayar', sa.BigInteger(), nullable=False),
        _money('sisa_bayar'),
        sa.Column('jenis_pembayaran', sa.String(length=30), nullable=True),
        sa.Column('tujuan_pembayaran_id', sa.Integer(), nullable=False),
        sa.Column('keterangan', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        _created_at(),
        sa.ForeignKeyConstraint(['penjualan_id'], ['penjualans.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tujuan_pembayaran_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'qc_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pembelian_id', sa.Integer(), nullable=False),
        sa.Column('tanggal_qc', sa.Date(), nullable=False),
        sa.Column('jenis_qc', sa.String(length=100), nullable=False),
        sa.Column('total_pengeluaran', sa.BigInteger(), nullable=False),
        sa.Column('keterangan', sa.String(length=255), nullable=True),
        sa.Column('sumber_dana_id', sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['pembelian_id'], ['pembelian.id']),
        sa.ForeignKeyConstraint(['sumber_dana_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'biro_jasa',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tanggal', sa.Date(), nullable=False),
        sa.Column('divisi', sa.String(length=50), nullable=True),
        sa.Column('cabang_id', sa.Integer(), nullable=True),
        sa.Column('plat_nomor', sa.String(length=20), nullable=True),
        sa.Column('jenis_motor', sa.String(length=100), nullable=True),
        sa.Column('warna', sa.String(length=50), nullable=True),
        sa.Column('tahun', sa.Integer(), nullable=True),
        sa.Column('nama_customer', sa.String(length=150), nullable=False),
        sa.Column('no_telepon', sa.String(length=30), nullable=True),
        sa.Column('jenis_pengurusan', sa.String(length=100), nullable=False),
        sa.Column('keterangan', sa.Text(), nullable=True),
        _money('estimasi_biaya'),
        _money('dp'),
        _money('total_bayar'),
        _money('sisa'),
        sa.Column('rekening_tujuan_id', sa.Integer(), nullable=True),
        _money('dp_vendor'),
        sa.Column('dp_vendor_date', sa.Date(), nullable=True),
        sa.Column('dp_vendor_company_id', sa.Integer(), nullable=True),
        _money('biaya_modal'),
        _money('keuntungan'),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='Dalam Proses'),
        _created_at(),
        sa.ForeignKeyConstraint(['cabang_id'], ['cabang.id']),
        sa.ForeignKeyConstraint(['rekening_tujuan_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['dp_vendor_company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'biro_jasa_cicilan',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('biro_jasa_id', sa.Integer(), nullable=False),
        sa.Column('tanggal_bayar', sa.Date(), nullable=False),
        sa.Column('jumlah_bayar', sa.BigInteger(), nullable=False),
        sa.Column('tujuan_pembayaran_id', sa.Integer(), nullable=False),
        sa.Column('keterangan', sa.String(length=255), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['biro_jasa_id'], ['biro_jasa.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tujuan_pembayaran_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'modal_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('jumlah', sa.BigInteger(), nullable=False),
        sa.Column('keterangan', sa.String(length=255), nullable=True),
        sa.Column('tanggal', sa.Date(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'pending_effects',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('routine', sa.String(length=60), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('operation', sa.Text(), nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_pending_effects_status', 'pending_effects', ['status'])


def downgrade():
    op.drop_index('ix_pending_effects_status', table_name='pending_effects')
    op.drop_table('pending_effects')
    op.drop_table('modal_history')
    op.drop_table('biro_jasa_cicilan')
    op.drop_table('biro_jasa')
    op.drop_table('qc_history')
    op.drop_table('cicilan')
    op.drop_table('price_histories')
    op.drop_table('price_histories_pembelian')
    op.drop_index('ix_pembukuan_penjualan_id', table_name='pembukuan')
    op.drop_index('ix_pembukuan_pembelian_id', table_name='pembukuan')
    op.drop_index('ix_pembukuan_tanggal', table_name='pembukuan')
    op.drop_table('pembukuan')
    op.drop_table('penjualans')
    op.drop_table('pembelian')
    op.drop_table('jenis_motor')
    op.drop_table('brands')
    op.drop_table('cabang')
    op.drop_table('companies')
