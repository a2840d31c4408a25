import click
from flask.cli import with_appcontext

from showroom.outbox import retry_pending


@click.command("retry-pending-effects")
@click.option("--limit", default=None, type=int, help="Batasi jumlah langkah yang dicoba.")
@with_appcontext
def retry_pending_effects(limit):
    """Jalankan ulang pembukuan/modal/stok yang sebelumnya gagal."""
    done, failed = retry_pending(limit=limit)
    click.echo(f"Berhasil: {done}, masih gagal: {failed}")
