from dataclasses import dataclass
from dataclasses import field
from datetime import date
import json
from pathlib import Path
from typing import Any, Optional

from loguru import logger
import yaml


def parse_date(value: Any) -> Optional[date]:
    """Parses the leading `YYYY-MM-DD` of a backend date/datetime string."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


@dataclass
class MataKuliah:
    kode: str
    nama: str
    semester: Optional[int] = None
    blok: Optional[int] = None
    tanggal_mulai: Optional[date] = None
    tanggal_akhir: Optional[date] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MataKuliah":
        return cls(
            kode=str(data.get("kode", "")),
            nama=data.get("nama", ""),
            semester=data.get("semester"),
            blok=data.get("blok"),
            tanggal_mulai=parse_date(data.get("tanggal_mulai")),
            tanggal_akhir=parse_date(data.get("tanggal_akhir")),
        )


@dataclass
class Dosen:
    id: int
    name: str
    nid: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Dosen":
        return cls(id=int(data["id"]), name=data.get("name", ""), nid=data.get("nid"))


@dataclass
class Ruangan:
    id: int
    nama: str
    kapasitas: Optional[int] = None
    gedung: Optional[str] = None

    @property
    def label(self) -> str:
        if self.kapasitas:
            return f"{self.nama} (Kapasitas: {self.kapasitas} orang) - {self.gedung or ''}"
        return self.nama

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Ruangan":
        return cls(
            id=int(data["id"]),
            nama=data.get("nama", ""),
            kapasitas=data.get("kapasitas"),
            gedung=data.get("gedung"),
        )


@dataclass
class KelompokKecil:
    id: int
    nama_kelompok: str
    jumlah_anggota: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KelompokKecil":
        return cls(
            id=int(data["id"]),
            nama_kelompok=str(data.get("nama_kelompok", "")),
            jumlah_anggota=int(data.get("jumlah_anggota") or 0),
        )


@dataclass
class ModulPBL:
    id: int
    modul_ke: str
    nama_modul: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModulPBL":
        return cls(
            id=int(data["id"]),
            modul_ke=str(data.get("modul_ke", "")),
            nama_modul=data.get("nama_modul", ""),
        )


@dataclass
class JadwalRow:
    """Read-only projection of a backend schedule record."""

    id: int
    tanggal: Optional[date]
    jam_mulai: str
    jam_selesai: str
    jumlah_sesi: int
    ruangan_id: Optional[int]

    @staticmethod
    def _common(data: dict[str, Any], default_sesi: int = 2) -> dict[str, Any]:
        ruangan_id = data.get("ruangan_id")
        return {
            "id": int(data["id"]),
            "tanggal": parse_date(data.get("tanggal")),
            "jam_mulai": str(data.get("jam_mulai") or ""),
            "jam_selesai": str(data.get("jam_selesai") or ""),
            "jumlah_sesi": int(data.get("jumlah_sesi") or default_sesi),
            "ruangan_id": int(ruangan_id) if ruangan_id is not None else None,
        }


@dataclass
class KuliahBesarRow(JadwalRow):
    materi: str = ""
    topik: str = ""
    dosen_id: Optional[int] = None
    kelompok_besar_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KuliahBesarRow":
        return cls(
            **cls._common(data),
            materi=data.get("materi") or "",
            topik=data.get("topik") or "",
            dosen_id=data.get("dosen_id"),
            kelompok_besar_id=data.get("kelompok_besar_id"),
        )


@dataclass
class AgendaKhususRow(JadwalRow):
    agenda: str = ""
    use_ruangan: bool = True
    kelompok_besar_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgendaKhususRow":
        return cls(
            **cls._common(data),
            agenda=data.get("agenda") or "",
            use_ruangan=bool(data.get("use_ruangan", True)),
            kelompok_besar_id=data.get("kelompok_besar_id"),
        )


@dataclass
class PraktikumRow(JadwalRow):
    materi: str = ""
    topik: str = ""
    kelas_praktikum: str = ""
    dosen_ids: list[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PraktikumRow":
        dosen = data.get("dosen") or []
        dosen_ids = [int(d["id"]) for d in dosen if isinstance(d, dict) and "id" in d]
        if not dosen_ids and data.get("dosen_id") is not None:
            dosen_ids = [int(data["dosen_id"])]
        return cls(
            **cls._common(data),
            materi=data.get("materi") or "",
            topik=data.get("topik") or "",
            kelas_praktikum=data.get("kelas_praktikum") or "",
            dosen_ids=dosen_ids,
        )


@dataclass
class PblRow(JadwalRow):
    modul_pbl_id: Optional[int] = None
    kelompok: str = ""
    dosen_id: Optional[int] = None
    pbl_tipe: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PblRow":
        kelompok_kecil = data.get("kelompok_kecil") or {}
        return cls(
            **cls._common(data),
            modul_pbl_id=data.get("modul_pbl_id"),
            kelompok=str(kelompok_kecil.get("nama_kelompok") or ""),
            dosen_id=data.get("dosen_id"),
            pbl_tipe=data.get("pbl_tipe") or "",
        )


@dataclass
class JurnalReadingRow(JadwalRow):
    topik: str = ""
    kelompok: str = ""
    dosen_id: Optional[int] = None
    file_jurnal: Optional[str] = None

    @property
    def file_name(self) -> Optional[str]:
        if not self.file_jurnal:
            return None
        return self.file_jurnal.rsplit("/", 1)[-1] or "File Jurnal"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JurnalReadingRow":
        kelompok_kecil = data.get("kelompok_kecil") or {}
        return cls(
            **cls._common(data, default_sesi=1),
            topik=data.get("topik") or "",
            kelompok=str(kelompok_kecil.get("nama_kelompok") or ""),
            dosen_id=data.get("dosen_id"),
            file_jurnal=data.get("file_jurnal"),
        )


def _list(data: dict[str, Any], key: str) -> list:
    value = data.get(key)
    return value if isinstance(value, list) else []


@dataclass
class BatchData:
    """Everything the course detail view needs, fetched in a single round-trip."""

    mata_kuliah: MataKuliah
    kuliah_besar: list[KuliahBesarRow] = field(default_factory=list)
    agenda_khusus: list[AgendaKhususRow] = field(default_factory=list)
    praktikum: list[PraktikumRow] = field(default_factory=list)
    pbl: list[PblRow] = field(default_factory=list)
    jurnal_reading: list[JurnalReadingRow] = field(default_factory=list)
    modul_pbl: list[ModulPBL] = field(default_factory=list)
    kelompok_kecil: list[KelompokKecil] = field(default_factory=list)
    ruangan: list[Ruangan] = field(default_factory=list)
    dosen_all: list[Dosen] = field(default_factory=list)
    dosen_matching: list[Dosen] = field(default_factory=list)
    kelas_praktikum: list[str] = field(default_factory=list)
    materi_praktikum: list[str] = field(default_factory=list)
    jam_options: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BatchData":
        dosen = data.get("dosen") or {}
        return cls(
            mata_kuliah=MataKuliah.from_dict(data.get("mata_kuliah") or {}),
            kuliah_besar=[KuliahBesarRow.from_dict(r) for r in _list(data, "jadwal_kuliah_besar")],
            agenda_khusus=[
                AgendaKhususRow.from_dict(r) for r in _list(data, "jadwal_agenda_khusus")
            ],
            praktikum=[PraktikumRow.from_dict(r) for r in _list(data, "jadwal_praktikum")],
            pbl=[PblRow.from_dict(r) for r in _list(data, "jadwal_pbl")],
            jurnal_reading=[
                JurnalReadingRow.from_dict(r) for r in _list(data, "jadwal_jurnal_reading")
            ],
            modul_pbl=[ModulPBL.from_dict(m) for m in _list(data, "modul_pbl")],
            kelompok_kecil=[KelompokKecil.from_dict(k) for k in _list(data, "kelompok_kecil")],
            ruangan=[Ruangan.from_dict(r) for r in _list(data, "ruangan")],
            dosen_all=[Dosen.from_dict(d) for d in _list(dosen, "all")],
            dosen_matching=[Dosen.from_dict(d) for d in _list(dosen, "matching")],
            kelas_praktikum=[
                k.get("nama", "") if isinstance(k, dict) else str(k)
                for k in _list(data, "kelas_praktikum")
            ],
            materi_praktikum=[str(m) for m in _list(data, "materi_praktikum")],
            jam_options=[str(j) for j in _list(data, "jam_options")],
        )

    def kelompok_kecil_id(self, nama_kelompok: str) -> Optional[int]:
        for kelompok in self.kelompok_kecil:
            if kelompok.nama_kelompok == nama_kelompok:
                return kelompok.id
        return None

    def ruangan_name(self, ruangan_id: Optional[int]) -> str:
        if ruangan_id is None:
            return "-"
        for ruangan in self.ruangan:
            if ruangan.id == ruangan_id:
                return ruangan.nama
        return f"Ruangan {ruangan_id}"

    def dosen_name(self, dosen_id: Optional[int]) -> str:
        if dosen_id is None:
            return "-"
        for dosen in self.dosen_all:
            if dosen.id == dosen_id:
                return dosen.name
        return f"Dosen {dosen_id}"


def load_entries(path: str | Path) -> list[dict[str, Any]]:
    """Loads schedule entries for bulk submission from a YAML or JSON file.

    The file holds a list of mappings, each with a `jenis` key naming the
    activity kind plus that kind's fields.
    """
    file_path = Path(path)
    if not file_path.exists():
        logger.error(f"Schedule file {file_path} not found.")
        raise FileNotFoundError(f"{file_path} not found.")

    logger.info(f"Loading schedule entries from {file_path}")
    with open(file_path, "r", encoding="utf-8") as f:
        if file_path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if isinstance(data, dict):
        # Single entry, or {"jadwal": [...]}
        data = data.get("jadwal", [data])

    entries = []
    for item in data or []:
        if not isinstance(item, dict):
            continue
        entries.append(item)

    logger.info(f"Loaded {len(entries)} schedule entries.")
    return entries
