from unittest.mock import AsyncMock
from unittest.mock import MagicMock

import pytest

from fazuh.akademik.api.client import ApiClient
from fazuh.akademik.session import AppContext


def pytest_addoption(parser):
    parser.addoption(
        "--run-live", action="store_true", default=False, help="run tests against a live backend"
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "live: mark test as needing a running backend")


def pytest_collection_modifyitems(config, items):
    skip_live = pytest.mark.skip(reason="need --run-live option to run")

    run_live = config.getoption("--run-live")

    for item in items:
        if "live" in item.keywords and not run_live:
            item.add_marker(skip_live)


@pytest.fixture
def context(tmp_path):
    return AppContext(tmp_path / "session.json")


@pytest.fixture
def mock_client(context):
    client = MagicMock(spec=ApiClient)
    client.context = context
    client.get = AsyncMock()
    client.post = AsyncMock()
    client.put = AsyncMock()
    client.delete = AsyncMock()
    client.post_multipart = AsyncMock()
    client.download = AsyncMock()
    return client


@pytest.fixture
def batch_payload():
    """A batch-data response for one course block running through September 2025."""
    return {
        "mata_kuliah": {
            "kode": "MKB101",
            "nama": "Blok Kardiovaskular",
            "semester": 3,
            "blok": 1,
            "tanggal_mulai": "2025-09-01",
            "tanggal_akhir": "2025-09-30",
        },
        "jadwal_kuliah_besar": [
            {
                "id": 1,
                "tanggal": "2025-09-02",
                "jam_mulai": "07:20",
                "jam_selesai": "09:00",
                "jumlah_sesi": 2,
                "materi": "Anatomi",
                "topik": "Jantung",
                "dosen_id": 7,
                "ruangan_id": 1,
                "kelompok_besar_id": None,
            }
        ],
        "jadwal_agenda_khusus": [],
        "jadwal_praktikum": [
            {
                "id": 5,
                "tanggal": "2025-09-04T00:00:00.000000Z",
                "jam_mulai": "13:00:00",
                "jam_selesai": "14:40:00",
                "jumlah_sesi": 2,
                "materi": "Fisiologi",
                "topik": "EKG",
                "kelas_praktikum": "A",
                "ruangan_id": 2,
                "dosen": [{"id": 7, "name": "dr. Rina"}, {"id": 8, "name": "dr. Budi"}],
            }
        ],
        "jadwal_pbl": [
            {
                "id": 10,
                "tanggal": "2025-09-03",
                "jam_mulai": "10:00",
                "jam_selesai": "11:40",
                "jumlah_sesi": 2,
                "modul_pbl_id": 4,
                "kelompok_kecil": {"id": 21, "nama_kelompok": "1"},
                "dosen_id": 7,
                "ruangan_id": 2,
                "pbl_tipe": "PBL 1",
            }
        ],
        "jadwal_jurnal_reading": [
            {
                "id": 12,
                "tanggal": "2025-09-05",
                "jam_mulai": "08:00",
                "jam_selesai": "08:50",
                "jumlah_sesi": 1,
                "kelompok_kecil": {"id": 22, "nama_kelompok": "2"},
                "dosen_id": 8,
                "ruangan_id": 1,
                "topik": "Hipertensi",
                "file_jurnal": "jurnal_reading/hipertensi.pdf",
            }
        ],
        "modul_pbl": [{"id": 4, "modul_ke": "1", "nama_modul": "Nyeri Dada"}],
        "kelompok_kecil": [
            {"id": 21, "nama_kelompok": "1", "jumlah_anggota": 10},
            {"id": 22, "nama_kelompok": "2", "jumlah_anggota": 9},
        ],
        "ruangan": [
            {"id": 1, "nama": "Aula A", "kapasitas": 120, "gedung": "Gedung B"},
            {"id": 2, "nama": "R. Tutorial 3", "kapasitas": 15, "gedung": "Gedung C"},
        ],
        "dosen": {
            "all": [{"id": 7, "name": "dr. Rina"}, {"id": 8, "name": "dr. Budi"}],
            "matching": [{"id": 7, "name": "dr. Rina"}],
        },
        "kelas_praktikum": [{"id": 1, "nama": "A"}, {"id": 2, "nama": "B"}],
        "materi_praktikum": ["Fisiologi"],
        "jam_options": ["07.20", "08.10", "09.00"],
    }
