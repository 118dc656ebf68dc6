"""Client-side pre-checks run before any schedule write.

These checks only save a pointless round-trip. They see nothing but the rows
already loaded into this client, so the backend stays the authority on
uniqueness and validity.
"""

from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from fazuh.akademik.error import FileConstraintError
from fazuh.akademik.error import ValidationError
from fazuh.akademik.model import MataKuliah
from fazuh.akademik.model import PblRow
from fazuh.akademik.schedule.form import PblForm

JURNAL_EXTENSIONS = (".xlsx", ".xls", ".docx", ".doc", ".pdf")
JURNAL_MAX_BYTES = 10 * 1024 * 1024

BACKUP_EXTENSIONS = (".sql", ".zip")
BACKUP_MAX_BYTES = 100 * 1024 * 1024


def check_date_range(tanggal: date, mata_kuliah: MataKuliah):
    """Rejects a date outside the course's [tanggal_mulai, tanggal_akhir] window."""
    if mata_kuliah.tanggal_mulai and tanggal < mata_kuliah.tanggal_mulai:
        raise ValidationError("Tanggal tidak boleh sebelum tanggal mulai!")
    if mata_kuliah.tanggal_akhir and tanggal > mata_kuliah.tanggal_akhir:
        raise ValidationError("Tanggal tidak boleh setelah tanggal akhir!")


def check_pbl_duplicate(form: PblForm, rows: Iterable[PblRow], editing_id: Optional[int] = None):
    """Blocks a PBL slot whose (tanggal, kelompok, pbl_tipe) already appears in `rows`.

    The row being edited is skipped so that saving it unchanged is allowed.
    """
    for row in rows:
        if editing_id is not None and row.id == editing_id:
            continue
        if (
            row.tanggal == form.tanggal
            and row.kelompok == form.kelompok
            and row.pbl_tipe == form.pbl_tipe
        ):
            raise ValidationError(
                "Hari/Tanggal sudah ada di jadwal PBL untuk kelompok dan tipe yang sama!"
            )


def _check_file(
    path: Path, extensions: tuple[str, ...], max_bytes: int, type_message: str, size_message: str
):
    if not path.is_file():
        raise FileConstraintError(f"File {path} tidak ditemukan.")
    if path.suffix.lower() not in extensions:
        raise FileConstraintError(type_message)
    if path.stat().st_size > max_bytes:
        raise FileConstraintError(size_message)


def check_attachment(path: Path):
    """Journal attachments: office documents or PDF, at most 10 MB."""
    _check_file(
        Path(path),
        JURNAL_EXTENSIONS,
        JURNAL_MAX_BYTES,
        "Tipe file tidak didukung. Gunakan Excel, Word, atau PDF.",
        "Ukuran file terlalu besar. Maksimal 10MB.",
    )


def check_backup_file(path: Path):
    """Restore uploads: `.sql` or `.zip`, at most 100 MB."""
    _check_file(
        Path(path),
        BACKUP_EXTENSIONS,
        BACKUP_MAX_BYTES,
        "Tipe file tidak didukung. Gunakan SQL atau ZIP.",
        "Ukuran file terlalu besar. Maksimal 100MB.",
    )
