import asyncio
from unittest.mock import AsyncMock

import pytest

from fazuh.akademik.error import ApiError
from fazuh.akademik.error import BusyError
from fazuh.akademik.error import FileConstraintError
from fazuh.akademik.error import ValidationError
from fazuh.akademik.schedule.form import Clear
from fazuh.akademik.schedule.form import JurnalReadingForm
from fazuh.akademik.schedule.form import KuliahBesarForm
from fazuh.akademik.schedule.form import PblForm
from fazuh.akademik.schedule.form import Replace
from fazuh.akademik.schedule.form import ScheduleKind
from fazuh.akademik.schedule.service import JadwalService


@pytest.fixture
def service(mock_client, batch_payload):
    mock_client.get.return_value = batch_payload
    return JadwalService(mock_client, "MKB101")


@pytest.mark.asyncio
async def test_load_parses_batch(service, mock_client):
    batch = await service.load()

    mock_client.get.assert_awaited_once_with("/mata-kuliah/MKB101/batch-data")
    assert batch.mata_kuliah.nama == "Blok Kardiovaskular"
    assert len(service.rows(ScheduleKind.KULIAH_BESAR)) == 1
    assert service.rows(ScheduleKind.PRAKTIKUM)[0].dosen_ids == [7, 8]
    assert service.rows(ScheduleKind.AGENDA_KHUSUS) == []


@pytest.mark.asyncio
async def test_submit_lecture_posts_once_then_refetches(service, mock_client):
    await service.load()
    mock_client.get.reset_mock()

    form = KuliahBesarForm.create("2025-09-09", "08:00", "Anatomi", "Katup", 7, 1, jumlah_sesi=2)
    await service.submit(form)

    mock_client.post.assert_awaited_once()
    path = mock_client.post.await_args.args[0]
    payload = mock_client.post.await_args.kwargs["json"]
    assert path == "/kuliah-besar/jadwal/MKB101"
    assert payload["jam_mulai"] == "08:00"
    assert payload["jam_selesai"] == "09:40"
    mock_client.get.assert_awaited_once_with("/mata-kuliah/MKB101/batch-data")
    assert service.in_flight is False


@pytest.mark.asyncio
async def test_submit_edit_uses_put(service, mock_client):
    form = KuliahBesarForm.create("2025-09-09", "08:00", "Anatomi", "Katup", 7, 1)
    await service.submit(form, editing_id=1)

    mock_client.put.assert_awaited_once()
    assert mock_client.put.await_args.args[0] == "/kuliah-besar/jadwal/MKB101/1"
    mock_client.post.assert_not_awaited()


@pytest.mark.asyncio
async def test_pbl_duplicate_is_blocked_without_network_call(service, mock_client):
    await service.load()
    mock_client.get.reset_mock()

    form = PblForm.create("2025-09-03", "13:00", 4, "1", 8, 1, pbl_tipe="PBL 1")
    with pytest.raises(ValidationError, match="sudah ada di jadwal PBL"):
        await service.submit(form)

    mock_client.post.assert_not_awaited()
    mock_client.get.assert_not_awaited()
    assert service.in_flight is False


@pytest.mark.asyncio
async def test_pbl_submit_goes_to_course_resource(service, mock_client):
    form = PblForm.create("2025-09-10", "10:00", 4, "2", 7, 2, pbl_tipe="PBL 2")
    await service.submit(form)

    assert mock_client.post.await_args.args[0] == "/mata-kuliah/MKB101/jadwal-pbl"
    payload = mock_client.post.await_args.kwargs["json"]
    assert payload["jumlah_sesi"] == 3
    assert payload["jam_selesai"] == "12:30"
    assert payload["kelompok_kecil_id"] == 22


@pytest.mark.asyncio
async def test_out_of_range_date_is_blocked(service, mock_client):
    form = KuliahBesarForm.create("2025-10-01", "08:00", "Anatomi", "Katup", 7, 1)
    with pytest.raises(ValidationError, match="setelah tanggal akhir"):
        await service.submit(form)
    mock_client.post.assert_not_awaited()


@pytest.mark.asyncio
async def test_second_submit_while_in_flight_is_rejected(service, mock_client):
    await service.load()
    release = asyncio.Event()

    async def slow_post(*args, **kwargs):
        await release.wait()

    mock_client.post.side_effect = slow_post
    form = KuliahBesarForm.create("2025-09-09", "08:00", "Anatomi", "Katup", 7, 1)

    first = asyncio.create_task(service.submit(form))
    await asyncio.sleep(0)
    assert service.in_flight is True

    with pytest.raises(BusyError):
        await service.submit(form)

    release.set()
    await first
    assert mock_client.post.await_count == 1
    assert service.in_flight is False


@pytest.mark.asyncio
async def test_backend_error_clears_in_flight(service, mock_client):
    mock_client.post.side_effect = ApiError(422, "Bentrok jadwal")
    form = KuliahBesarForm.create("2025-09-09", "08:00", "Anatomi", "Katup", 7, 1)

    with pytest.raises(ApiError, match="Bentrok jadwal"):
        await service.submit(form)
    assert service.in_flight is False


@pytest.mark.asyncio
async def test_jurnal_create_is_multipart(service, mock_client, tmp_path):
    attachment = tmp_path / "jurnal.pdf"
    attachment.write_bytes(b"%PDF-1.4")
    form = JurnalReadingForm.create(
        "2025-09-12", "08:00", "Gagal Jantung", "1", 8, 1, attachment=Replace(attachment)
    )

    await service.submit(form)

    mock_client.post_multipart.assert_awaited_once()
    call = mock_client.post_multipart.await_args
    assert call.args[0] == "/jurnal-reading/jadwal/MKB101"
    assert call.kwargs["data"]["jam_selesai"] == "08:50"
    assert call.kwargs["data"]["kelompok_kecil_id"] == "21"
    assert "_method" not in call.kwargs["data"]
    name, content, mime = call.kwargs["files"]["file_jurnal"]
    assert (name, content, mime) == ("jurnal.pdf", b"%PDF-1.4", "application/pdf")


@pytest.mark.asyncio
async def test_jurnal_edit_with_new_file_overrides_method(service, mock_client, tmp_path):
    attachment = tmp_path / "baru.docx"
    attachment.write_bytes(b"doc")
    form = JurnalReadingForm.create(
        "2025-09-05", "08:00", "Hipertensi", "2", 8, 1, attachment=Replace(attachment)
    )

    await service.submit(form, editing_id=12)

    call = mock_client.post_multipart.await_args
    assert call.args[0] == "/jurnal-reading/jadwal/MKB101/12"
    assert call.kwargs["data"]["_method"] == "PUT"
    mock_client.put.assert_not_awaited()


@pytest.mark.asyncio
async def test_jurnal_edit_retaining_file_is_json(service, mock_client):
    form = JurnalReadingForm.create("2025-09-05", "09:00", "Hipertensi", "2", 8, 1)

    await service.submit(form, editing_id=12)

    mock_client.post_multipart.assert_not_awaited()
    payload = mock_client.put.await_args.kwargs["json"]
    assert "file_jurnal" not in payload
    assert payload["jam_selesai"] == "09:50"


@pytest.mark.asyncio
async def test_jurnal_edit_clearing_file_sends_null(service, mock_client):
    form = JurnalReadingForm.create(
        "2025-09-05", "08:00", "Hipertensi", "2", 8, 1, attachment=Clear()
    )

    await service.submit(form, editing_id=12)

    payload = mock_client.put.await_args.kwargs["json"]
    assert payload["file_jurnal"] is None


@pytest.mark.asyncio
async def test_jurnal_oversized_file_is_blocked(service, mock_client, tmp_path):
    attachment = tmp_path / "besar.pdf"
    with open(attachment, "wb") as f:
        f.truncate(11 * 1024 * 1024)
    form = JurnalReadingForm.create(
        "2025-09-12", "08:00", "Gagal Jantung", "1", 8, 1, attachment=Replace(attachment)
    )

    with pytest.raises(FileConstraintError):
        await service.submit(form)
    mock_client.post_multipart.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_then_refetch(service, mock_client):
    await service.delete(ScheduleKind.PRAKTIKUM, 5)

    mock_client.delete.assert_awaited_once_with("/praktikum/jadwal/MKB101/5")
    mock_client.get.assert_awaited_once()


@pytest.mark.asyncio
async def test_import_entries_skips_invalid(service, mock_client, tmp_path):
    path = tmp_path / "jadwal.yaml"
    path.write_text(
        """
jadwal:
  - jenis: kuliah-besar
    tanggal: "2025-09-09"
    jam_mulai: "08:00"
    jumlah_sesi: 2
    materi: Anatomi
    topik: Katup
    dosen_id: 7
    ruangan_id: 1
  - jenis: pbl
    tanggal: "2025-09-03"
    jam_mulai: "10:00"
    pbl_tipe: PBL 1
    modul_pbl_id: 4
    kelompok: "1"
    dosen_id: 7
    ruangan_id: 2
  - jenis: seminar
    tanggal: "2025-09-09"
""",
        encoding="utf-8",
    )

    submitted = await service.import_entries(path)

    assert submitted == 1
    mock_client.post.assert_awaited_once()


@pytest.mark.asyncio
async def test_ruangan_by_capacity_parses_labels(service, mock_client):
    mock_client.get.return_value = [
        {"value": 1, "label": "Aula A (Kapasitas: 120 orang) - Gedung B"},
        {"value": 3, "label": "Lab"},
    ]

    rooms = await service.ruangan_by_capacity(100)

    mock_client.get.assert_awaited_once_with("/ruangan/options", params={"capacity": 100})
    assert rooms[0].nama == "Aula A"
    assert rooms[0].kapasitas == 120
    assert rooms[0].gedung == "Gedung B"
    assert rooms[1].nama == "Lab"
    assert rooms[1].kapasitas == 0


@pytest.mark.asyncio
async def test_assigned_pbl_dosen_deduplicates(service, mock_client):
    mock_client.post = AsyncMock(
        return_value={
            "4": [{"id": 7, "name": "dr. Rina"}, {"id": 8, "name": "dr. Budi"}],
            "5": [{"id": 7, "name": "dr. Rina"}],
        }
    )

    dosen = await service.assigned_pbl_dosen()

    mock_client.post.assert_awaited_once_with("/pbls/assigned-dosen-batch", json={"pbl_ids": [4]})
    assert [d.id for d in dosen] == [7, 8]


@pytest.mark.asyncio
async def test_import_entries_skips_non_numeric_ids(service, mock_client, tmp_path):
    path = tmp_path / "jadwal.yaml"
    path.write_text(
        """
- jenis: kuliah-besar
  tanggal: "2025-09-09"
  jam_mulai: "08:00"
  materi: Anatomi
  topik: Katup
  dosen_id: dr. Rina
  ruangan_id: 1
- jenis: kuliah-besar
  tanggal: "2025-09-10"
  jam_mulai: 10:00
  materi: Anatomi
  topik: Katup
  dosen_id: 7
  ruangan_id: 1
""",
        encoding="utf-8",
    )

    submitted = await service.import_entries(path)

    assert submitted == 1
    mock_client.post.assert_awaited_once()
    payload = mock_client.post.await_args.kwargs["json"]
    assert payload["tanggal"] == "2025-09-10"
    assert payload["jam_mulai"] == "10:00"
    assert payload["jam_selesai"] == "11:40"
