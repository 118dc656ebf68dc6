"""Schedule forms, one variant per activity kind.

Each form is immutable and only constructible through its `create` smart
constructor, which enforces the kind's required-field set. The end time is
never an input: it is derived from the start time and the session count.
"""

from dataclasses import dataclass
from dataclasses import field
from datetime import date
from enum import Enum
import inspect
from pathlib import Path
from typing import Any, Optional, Union

from fazuh.akademik.error import ValidationError
from fazuh.akademik.model import BatchData
from fazuh.akademik.model import parse_date
from fazuh.akademik.schedule.time import hitung_jam_selesai
from fazuh.akademik.schedule.time import parse_jam

REQUIRED_MESSAGE = "Semua field wajib diisi!"


class ScheduleKind(Enum):
    KULIAH_BESAR = "kuliah-besar"
    AGENDA_KHUSUS = "agenda-khusus"
    PRAKTIKUM = "praktikum"
    PBL = "jadwal-pbl"
    JURNAL_READING = "jurnal-reading"

    @property
    def path(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, name: str) -> "ScheduleKind":
        """Accepts enum names, path values, and the short aliases used on the CLI."""
        key = name.strip().lower().replace("_", "-")
        if key in _ALIASES:
            return _ALIASES[key]
        for kind in cls:
            if key in (kind.value, kind.name.lower().replace("_", "-")):
                return kind
        raise ValidationError(f"Jenis jadwal tidak dikenal: {name}")


_LABELS = {
    ScheduleKind.KULIAH_BESAR: "Kuliah Besar",
    ScheduleKind.AGENDA_KHUSUS: "Agenda Khusus",
    ScheduleKind.PRAKTIKUM: "Praktikum",
    ScheduleKind.PBL: "PBL",
    ScheduleKind.JURNAL_READING: "Jurnal Reading",
}

_ALIASES = {
    "materi": ScheduleKind.KULIAH_BESAR,
    "kuliah": ScheduleKind.KULIAH_BESAR,
    "agenda": ScheduleKind.AGENDA_KHUSUS,
    "pbl": ScheduleKind.PBL,
    "jurnal": ScheduleKind.JURNAL_READING,
}


def _missing(value: Any) -> bool:
    return value is None or value == "" or value == []


def _require(*values: Any):
    if any(_missing(v) for v in values):
        raise ValidationError(REQUIRED_MESSAGE)


def _tanggal(value: Any) -> date:
    if isinstance(value, date):
        return value
    parsed = parse_date(value)
    if parsed is None or len(str(value)) != 10:
        raise ValidationError("Format tanggal harus YYYY-MM-DD!")
    return parsed


def _jam(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        # YAML 1.1 reads an unquoted 10:00 as the base-60 integer 600
        hour, minute = divmod(value, 60)
        value = f"{hour}:{minute:02d}"
    try:
        hour, minute = parse_jam(str(value))
    except ValueError:
        raise ValidationError("Format jam tidak valid!")
    return f"{hour:02d}:{minute:02d}"


def _sesi(value: Any) -> int:
    try:
        sesi = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Jumlah sesi harus berupa angka!")
    if sesi < 1:
        raise ValidationError("Jumlah sesi minimal 1!")
    return sesi


def _id(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} harus berupa angka!")


@dataclass(frozen=True)
class _Slot:
    tanggal: date
    jam_mulai: str
    jumlah_sesi: int

    @property
    def jam_selesai(self) -> str:
        return hitung_jam_selesai(self.jam_mulai, self.jumlah_sesi)

    def _slot_payload(self) -> dict[str, Any]:
        return {
            "tanggal": self.tanggal.isoformat(),
            "jam_mulai": self.jam_mulai,
            "jam_selesai": self.jam_selesai,
            "jumlah_sesi": self.jumlah_sesi,
        }


@dataclass(frozen=True)
class KuliahBesarForm(_Slot):
    materi: str
    topik: str
    dosen_id: int
    ruangan_id: int
    kelompok_besar_id: Optional[int] = None

    kind = ScheduleKind.KULIAH_BESAR

    @classmethod
    def create(
        cls,
        tanggal: Any,
        jam_mulai: str,
        materi: str,
        topik: str,
        dosen_id: Optional[int],
        ruangan_id: Optional[int],
        jumlah_sesi: int = 2,
        kelompok_besar_id: Optional[int] = None,
    ) -> "KuliahBesarForm":
        _require(tanggal, jam_mulai, materi, topik, dosen_id, ruangan_id)
        return cls(
            tanggal=_tanggal(tanggal),
            jam_mulai=_jam(jam_mulai),
            jumlah_sesi=_sesi(jumlah_sesi),
            materi=materi,
            topik=topik,
            dosen_id=_id(dosen_id, "dosen_id"),
            ruangan_id=_id(ruangan_id, "ruangan_id"),
            kelompok_besar_id=None if _missing(kelompok_besar_id) else _id(kelompok_besar_id, "kelompok_besar_id"),
        )

    def payload(self, batch: BatchData) -> dict[str, Any]:
        return {
            **self._slot_payload(),
            "materi": self.materi,
            "topik": self.topik,
            "dosen_id": self.dosen_id,
            "ruangan_id": self.ruangan_id,
            "kelompok_besar_id": self.kelompok_besar_id,
        }


@dataclass(frozen=True)
class AgendaKhususForm(_Slot):
    agenda: str
    use_ruangan: bool = True
    ruangan_id: Optional[int] = None
    kelompok_besar_id: Optional[int] = None

    kind = ScheduleKind.AGENDA_KHUSUS

    @classmethod
    def create(
        cls,
        tanggal: Any,
        jam_mulai: str,
        agenda: str,
        use_ruangan: bool = True,
        ruangan_id: Optional[int] = None,
        jumlah_sesi: int = 2,
        kelompok_besar_id: Optional[int] = None,
    ) -> "AgendaKhususForm":
        _require(tanggal, jam_mulai, agenda)
        if use_ruangan and _missing(ruangan_id):
            raise ValidationError("Ruangan wajib dipilih jika menggunakan ruangan!")
        return cls(
            tanggal=_tanggal(tanggal),
            jam_mulai=_jam(jam_mulai),
            jumlah_sesi=_sesi(jumlah_sesi),
            agenda=agenda,
            use_ruangan=use_ruangan,
            ruangan_id=_id(ruangan_id, "ruangan_id") if use_ruangan else None,
            kelompok_besar_id=None if _missing(kelompok_besar_id) else _id(kelompok_besar_id, "kelompok_besar_id"),
        )

    def payload(self, batch: BatchData) -> dict[str, Any]:
        return {
            **self._slot_payload(),
            "agenda": self.agenda,
            "ruangan_id": self.ruangan_id if self.use_ruangan else None,
            "kelompok_besar_id": self.kelompok_besar_id,
            "use_ruangan": self.use_ruangan,
        }


@dataclass(frozen=True)
class PraktikumForm(_Slot):
    materi: str
    kelas_praktikum: str
    ruangan_id: int
    dosen_ids: tuple[int, ...]
    topik: str = ""

    kind = ScheduleKind.PRAKTIKUM

    @classmethod
    def create(
        cls,
        tanggal: Any,
        jam_mulai: str,
        materi: str,
        kelas_praktikum: str,
        ruangan_id: Optional[int],
        dosen_ids: Union[int, list[int], tuple[int, ...], None],
        topik: str = "",
        jumlah_sesi: int = 2,
    ) -> "PraktikumForm":
        if isinstance(dosen_ids, int):
            dosen_ids = [dosen_ids]
        _require(tanggal, jam_mulai, materi, kelas_praktikum, ruangan_id, list(dosen_ids or []))
        return cls(
            tanggal=_tanggal(tanggal),
            jam_mulai=_jam(jam_mulai),
            jumlah_sesi=_sesi(jumlah_sesi),
            materi=materi,
            kelas_praktikum=kelas_praktikum,
            ruangan_id=_id(ruangan_id, "ruangan_id"),
            dosen_ids=tuple(_id(d, "dosen_ids") for d in dosen_ids),
            topik=topik or "",
        )

    def payload(self, batch: BatchData) -> dict[str, Any]:
        return {
            **self._slot_payload(),
            "materi": self.materi,
            "topik": self.topik,
            "kelas_praktikum": self.kelas_praktikum,
            "ruangan_id": self.ruangan_id,
            "dosen_ids": list(self.dosen_ids),
        }


def pbl_sessions(pbl_tipe: str) -> int:
    """PBL 2 runs three sessions, every other PBL type runs two."""
    return 3 if pbl_tipe == "PBL 2" else 2


@dataclass(frozen=True)
class PblForm(_Slot):
    modul_pbl_id: int
    kelompok: str
    dosen_id: int
    ruangan_id: int
    pbl_tipe: str = ""
    topik: str = ""

    kind = ScheduleKind.PBL

    @classmethod
    def create(
        cls,
        tanggal: Any,
        jam_mulai: str,
        modul_pbl_id: Optional[int],
        kelompok: str,
        dosen_id: Optional[int],
        ruangan_id: Optional[int],
        pbl_tipe: str = "",
        topik: str = "",
    ) -> "PblForm":
        _require(tanggal, jam_mulai, modul_pbl_id, kelompok, dosen_id, ruangan_id)
        return cls(
            tanggal=_tanggal(tanggal),
            jam_mulai=_jam(jam_mulai),
            jumlah_sesi=pbl_sessions(pbl_tipe),
            modul_pbl_id=_id(modul_pbl_id, "modul_pbl_id"),
            kelompok=str(kelompok),
            dosen_id=_id(dosen_id, "dosen_id"),
            ruangan_id=_id(ruangan_id, "ruangan_id"),
            pbl_tipe=pbl_tipe,
            topik=topik or "",
        )

    def payload(self, batch: BatchData) -> dict[str, Any]:
        kelompok_kecil_id = batch.kelompok_kecil_id(self.kelompok)
        if kelompok_kecil_id is None:
            raise ValidationError("Kelompok kecil tidak valid!")
        return {
            **self._slot_payload(),
            "modul_pbl_id": self.modul_pbl_id,
            "kelompok_kecil_id": kelompok_kecil_id,
            "dosen_id": self.dosen_id,
            "ruangan_id": self.ruangan_id,
            "pbl_tipe": self.pbl_tipe,
            "topik": self.topik,
            "catatan": "",
        }


@dataclass(frozen=True)
class Retain:
    """Keep whatever attachment the record already has."""


@dataclass(frozen=True)
class Clear:
    """Remove the existing attachment."""


@dataclass(frozen=True)
class Replace:
    """Upload a new attachment in place of the old one."""

    path: Path


Attachment = Union[Retain, Clear, Replace]


@dataclass(frozen=True)
class JurnalReadingForm(_Slot):
    topik: str
    kelompok: str
    dosen_id: int
    ruangan_id: int
    attachment: Attachment = field(default_factory=Retain)

    kind = ScheduleKind.JURNAL_READING

    @classmethod
    def create(
        cls,
        tanggal: Any,
        jam_mulai: str,
        topik: str,
        kelompok: str,
        dosen_id: Optional[int],
        ruangan_id: Optional[int],
        jumlah_sesi: int = 1,
        attachment: Optional[Attachment] = None,
    ) -> "JurnalReadingForm":
        _require(tanggal, jam_mulai, topik, kelompok, dosen_id, ruangan_id)
        return cls(
            tanggal=_tanggal(tanggal),
            jam_mulai=_jam(jam_mulai),
            jumlah_sesi=_sesi(jumlah_sesi),
            topik=topik,
            kelompok=str(kelompok),
            dosen_id=_id(dosen_id, "dosen_id"),
            ruangan_id=_id(ruangan_id, "ruangan_id"),
            attachment=attachment or Retain(),
        )

    def payload(self, batch: BatchData) -> dict[str, Any]:
        kelompok_kecil_id = batch.kelompok_kecil_id(self.kelompok)
        if kelompok_kecil_id is None:
            raise ValidationError("Kelompok tidak ditemukan!")
        return {
            **self._slot_payload(),
            "kelompok_kecil_id": kelompok_kecil_id,
            "dosen_id": self.dosen_id,
            "ruangan_id": self.ruangan_id,
            "topik": self.topik,
        }


ScheduleForm = Union[KuliahBesarForm, AgendaKhususForm, PraktikumForm, PblForm, JurnalReadingForm]

_FORMS: dict[ScheduleKind, Any] = {
    ScheduleKind.KULIAH_BESAR: KuliahBesarForm,
    ScheduleKind.AGENDA_KHUSUS: AgendaKhususForm,
    ScheduleKind.PRAKTIKUM: PraktikumForm,
    ScheduleKind.PBL: PblForm,
    ScheduleKind.JURNAL_READING: JurnalReadingForm,
}


def build_form(kind: ScheduleKind, fields: dict[str, Any]) -> ScheduleForm:
    """Builds the form variant for `kind` from loosely-typed input (CLI or file).

    Unknown keys are ignored; `jam_selesai` is dropped since it is always derived.
    """
    fields = {k: v for k, v in fields.items() if k not in ("jenis", "jam_selesai", "id")}
    if kind is ScheduleKind.JURNAL_READING and fields.get("file_jurnal"):
        fields["attachment"] = Replace(Path(fields.pop("file_jurnal")))
    fields.pop("file_jurnal", None)

    form_cls = _FORMS[kind]
    allowed = inspect.signature(form_cls.create).parameters
    kwargs = {k: v for k, v in fields.items() if k in allowed}
    try:
        return form_cls.create(**kwargs)
    except TypeError:
        # A required argument was not supplied at all
        raise ValidationError(REQUIRED_MESSAGE)
