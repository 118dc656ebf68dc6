import mimetypes
from pathlib import Path
import re
from typing import Any, Optional

from loguru import logger

from fazuh.akademik.api.client import ApiClient
from fazuh.akademik.api.path import Endpoint
from fazuh.akademik.error import BusyError
from fazuh.akademik.error import ValidationError
from fazuh.akademik.model import BatchData
from fazuh.akademik.model import Dosen
from fazuh.akademik.model import JadwalRow
from fazuh.akademik.model import Ruangan
from fazuh.akademik.model import load_entries
from fazuh.akademik.schedule.form import Clear
from fazuh.akademik.schedule.form import JurnalReadingForm
from fazuh.akademik.schedule.form import PblForm
from fazuh.akademik.schedule.form import Replace
from fazuh.akademik.schedule.form import ScheduleForm
from fazuh.akademik.schedule.form import ScheduleKind
from fazuh.akademik.schedule.form import build_form
from fazuh.akademik.schedule.guard import check_attachment
from fazuh.akademik.schedule.guard import check_date_range
from fazuh.akademik.schedule.guard import check_pbl_duplicate

_ROWS_ATTR = {
    ScheduleKind.KULIAH_BESAR: "kuliah_besar",
    ScheduleKind.AGENDA_KHUSUS: "agenda_khusus",
    ScheduleKind.PRAKTIKUM: "praktikum",
    ScheduleKind.PBL: "pbl",
    ScheduleKind.JURNAL_READING: "jurnal_reading",
}

_CAPACITY_LABEL = re.compile(r"Kapasitas: (\d+)")
_GEDUNG_LABEL = re.compile(r"- (.+)$")


class JadwalService:
    """Schedule management for a single course (Mata Kuliah).

    The service holds the last batch-data snapshot of the course. Rows are never
    patched locally: every successful write is followed by a full re-fetch, so
    the snapshot only ever reflects what the backend returned.
    """

    def __init__(self, client: ApiClient, kode: str):
        self.client = client
        self.kode = kode
        self.batch: Optional[BatchData] = None
        self.in_flight = False

    async def load(self) -> BatchData:
        """Fetches the course, every schedule kind and the reference lists in one request."""
        data = await self.client.get(Endpoint.batch_data(self.kode))
        self.batch = BatchData.from_dict(data or {})
        logger.debug(f"Loaded batch data for {self.kode}.")
        return self.batch

    async def _ensure_loaded(self) -> BatchData:
        if self.batch is None:
            return await self.load()
        return self.batch

    def rows(self, kind: ScheduleKind) -> list[JadwalRow]:
        if self.batch is None:
            return []
        return getattr(self.batch, _ROWS_ATTR[kind])

    async def submit(self, form: ScheduleForm, editing_id: Optional[int] = None) -> BatchData:
        """Creates (or, with `editing_id`, updates) one schedule entry.

        All client-side checks run before the request; a failing check raises
        `ValidationError` or `FileConstraintError` and nothing is sent.

        Raises:
            BusyError: Another submit is still waiting for the backend.
        """
        if self.in_flight:
            raise BusyError("Permintaan sebelumnya masih diproses.")

        self.in_flight = True
        try:
            batch = await self._ensure_loaded()
            check_date_range(form.tanggal, batch.mata_kuliah)
            if isinstance(form, PblForm):
                check_pbl_duplicate(form, batch.pbl, editing_id)
            if isinstance(form, JurnalReadingForm) and isinstance(form.attachment, Replace):
                check_attachment(form.attachment.path)
            payload = form.payload(batch)

            path = Endpoint.jadwal(form.kind.path, self.kode, editing_id)
            if isinstance(form, JurnalReadingForm):
                await self._send_jurnal(form, payload, path, editing_id)
            elif editing_id is None:
                await self.client.post(path, json=payload)
            else:
                await self.client.put(path, json=payload)

            action = "diperbarui" if editing_id is not None else "ditambahkan"
            logger.success(f"Jadwal {form.kind.label} {action}.")
            return await self.load()
        finally:
            self.in_flight = False

    async def _send_jurnal(
        self, form: JurnalReadingForm, payload: dict[str, Any], path: str, editing_id: Optional[int]
    ):
        attachment = form.attachment
        if editing_id is not None and not isinstance(attachment, Replace):
            if isinstance(attachment, Clear):
                payload = {**payload, "file_jurnal": None}
            await self.client.put(path, json=payload)
            return

        data = {key: str(value) for key, value in payload.items()}
        if editing_id is not None:
            # Multipart bodies cannot be sent with PUT, the backend reads the override field
            data["_method"] = "PUT"

        files = {}
        if isinstance(attachment, Replace):
            file_path = Path(attachment.path)
            mime = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
            files["file_jurnal"] = (file_path.name, file_path.read_bytes(), mime)
        await self.client.post_multipart(path, data=data, files=files)

    async def delete(self, kind: ScheduleKind, jadwal_id: int) -> BatchData:
        await self.client.delete(Endpoint.jadwal(kind.path, self.kode, jadwal_id))
        logger.success(f"Jadwal {kind.label} {jadwal_id} dihapus.")
        return await self.load()

    async def import_entries(self, path: str | Path) -> int:
        """Submits every entry of a YAML/JSON schedule file, in file order.

        Entries that fail a client-side check are logged and skipped. A backend
        or transport error stops the import.

        Returns:
            int: The number of entries the backend accepted.
        """
        entries = load_entries(path)
        await self._ensure_loaded()

        submitted = 0
        for index, entry in enumerate(entries, start=1):
            try:
                kind = ScheduleKind.parse(str(entry.get("jenis", "")))
                form = build_form(kind, entry)
                await self.submit(form, editing_id=entry.get("id"))
            except ValidationError as e:
                logger.error(f"Entry {index}: {e.message}")
                continue
            submitted += 1

        logger.info(f"Imported {submitted}/{len(entries)} schedule entries.")
        return submitted

    async def ruangan_list(self) -> list[Ruangan]:
        data = await self.client.get(Endpoint.RUANGAN)
        return [Ruangan.from_dict(r) for r in data or []]

    async def ruangan_by_capacity(self, capacity: int = 0) -> list[Ruangan]:
        """Rooms that fit `capacity` people, parsed back out of the option labels."""
        options = await self.client.get(Endpoint.RUANGAN_OPTIONS, params={"capacity": capacity})
        rooms = []
        for option in options or []:
            label = str(option.get("label", ""))
            capacity_match = _CAPACITY_LABEL.search(label)
            gedung_match = _GEDUNG_LABEL.search(label)
            rooms.append(
                Ruangan(
                    id=int(option["value"]),
                    nama=label.split(" (Kapasitas:")[0],
                    kapasitas=int(capacity_match.group(1)) if capacity_match else 0,
                    gedung=gedung_match.group(1) if gedung_match else "",
                )
            )
        return rooms

    async def assigned_pbl_dosen(self) -> list[Dosen]:
        """Lecturers assigned to any PBL module of this course, each listed once."""
        batch = await self._ensure_loaded()
        pbl_ids = [modul.id for modul in batch.modul_pbl if modul.id]
        if not pbl_ids:
            return []

        data = await self.client.post(Endpoint.PBL_ASSIGNED_DOSEN, json={"pbl_ids": pbl_ids})
        dosen: dict[int, Dosen] = {}
        for dosen_list in (data or {}).values():
            if not isinstance(dosen_list, list):
                continue
            for item in dosen_list:
                parsed = Dosen.from_dict(item)
                dosen.setdefault(parsed.id, parsed)
        return list(dosen.values())
