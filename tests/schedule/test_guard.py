from datetime import date

import pytest

from fazuh.akademik.error import FileConstraintError
from fazuh.akademik.error import ValidationError
from fazuh.akademik.model import MataKuliah
from fazuh.akademik.model import PblRow
from fazuh.akademik.schedule.form import PblForm
from fazuh.akademik.schedule.guard import check_attachment
from fazuh.akademik.schedule.guard import check_backup_file
from fazuh.akademik.schedule.guard import check_date_range
from fazuh.akademik.schedule.guard import check_pbl_duplicate


@pytest.fixture
def mata_kuliah():
    return MataKuliah(
        kode="MKB101",
        nama="Blok",
        tanggal_mulai=date(2025, 9, 1),
        tanggal_akhir=date(2025, 9, 30),
    )


@pytest.fixture
def pbl_rows():
    return [
        PblRow(
            id=10,
            tanggal=date(2025, 9, 3),
            jam_mulai="10:00",
            jam_selesai="11:40",
            jumlah_sesi=2,
            ruangan_id=2,
            modul_pbl_id=4,
            kelompok="1",
            dosen_id=7,
            pbl_tipe="PBL 1",
        )
    ]


def test_date_range_bounds_are_inclusive(mata_kuliah):
    check_date_range(date(2025, 9, 1), mata_kuliah)
    check_date_range(date(2025, 9, 30), mata_kuliah)


def test_date_before_start(mata_kuliah):
    with pytest.raises(ValidationError, match="sebelum tanggal mulai"):
        check_date_range(date(2025, 8, 31), mata_kuliah)


def test_date_after_end(mata_kuliah):
    with pytest.raises(ValidationError, match="setelah tanggal akhir"):
        check_date_range(date(2025, 10, 1), mata_kuliah)


def test_date_range_without_bounds():
    check_date_range(date(1999, 1, 1), MataKuliah(kode="X", nama="X"))


def test_pbl_duplicate_same_date_group_and_type(pbl_rows):
    form = PblForm.create("2025-09-03", "13:00", 4, "1", 8, 1, pbl_tipe="PBL 1")
    with pytest.raises(ValidationError, match="sudah ada di jadwal PBL"):
        check_pbl_duplicate(form, pbl_rows)


@pytest.mark.parametrize(
    "tanggal, kelompok, pbl_tipe",
    [("2025-09-04", "1", "PBL 1"), ("2025-09-03", "2", "PBL 1"), ("2025-09-03", "1", "PBL 2")],
)
def test_pbl_not_duplicate_when_any_key_differs(pbl_rows, tanggal, kelompok, pbl_tipe):
    form = PblForm.create(tanggal, "10:00", 4, kelompok, 7, 2, pbl_tipe=pbl_tipe)
    check_pbl_duplicate(form, pbl_rows)


def test_pbl_duplicate_skips_row_being_edited(pbl_rows):
    form = PblForm.create("2025-09-03", "10:00", 4, "1", 7, 2, pbl_tipe="PBL 1")
    check_pbl_duplicate(form, pbl_rows, editing_id=10)


def test_attachment_accepts_pdf(tmp_path):
    path = tmp_path / "jurnal.PDF"
    path.write_bytes(b"%PDF-1.4")
    check_attachment(path)


def test_attachment_rejects_type(tmp_path):
    path = tmp_path / "jurnal.txt"
    path.write_text("x")
    with pytest.raises(FileConstraintError, match="Tipe file tidak didukung"):
        check_attachment(path)


def test_attachment_rejects_size(tmp_path):
    path = tmp_path / "jurnal.docx"
    with open(path, "wb") as f:
        f.truncate(10 * 1024 * 1024 + 1)
    with pytest.raises(FileConstraintError, match="Maksimal 10MB"):
        check_attachment(path)


def test_attachment_missing_file(tmp_path):
    with pytest.raises(FileConstraintError):
        check_attachment(tmp_path / "missing.pdf")


def test_backup_file_rejects_type(tmp_path):
    path = tmp_path / "backup.tar"
    path.write_text("x")
    with pytest.raises(FileConstraintError, match="SQL atau ZIP"):
        check_backup_file(path)


def test_file_constraint_is_validation_error(tmp_path):
    path = tmp_path / "backup.tar"
    path.write_text("x")
    with pytest.raises(ValidationError):
        check_backup_file(path)
