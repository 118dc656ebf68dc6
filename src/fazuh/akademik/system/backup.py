"""Backup, restore and reset of the whole system.

The restore flow guesses a backup's kind from its file name so the user can be
warned before uploading. That guess is advisory only: the backend inspects the
file, may auto-correct the requested import type, and reports what it did.
The result shown to the user always comes from that report.
"""

from datetime import date
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from fazuh.akademik.api.client import ApiClient
from fazuh.akademik.api.path import Endpoint
from fazuh.akademik.error import ApiError
from fazuh.akademik.error import SessionExpiredError
from fazuh.akademik.error import ValidationError
from fazuh.akademik.schedule.guard import check_backup_file

BACKUP_TYPES = ("full", "data_only", "structure_only")
RESET_PHRASE = "reset"


def detect_backup_type(filename: str) -> Optional[str]:
    """Infers the backup kind from markers in the file name, or None if unmarked."""
    name = filename.lower()
    if "data_only" in name or "dataonly" in name:
        return "data_only"
    if "structure_only" in name or "structureonly" in name:
        return "structure_only"
    if "full" in name:
        return "full"
    return None


def import_type_warning(filename: str, selected: str) -> Optional[str]:
    """Warning text when the file name disagrees with the selected import type.

    Never blocks the import. Returns None when the name carries no marker, when
    it matches the selection, or for combinations the backend has no special
    handling for.
    """
    detected = detect_backup_type(filename)
    if detected is None or detected == selected:
        return None

    if detected == "data_only" and selected == "full":
        lines = [
            'File appears to be "Data Only" backup but "Full Restore" is selected',
            'System will auto-correct to "Data Only" import',
        ]
    elif detected == "full" and selected == "data_only":
        lines = [
            'File appears to be "Full" backup but "Data Only" is selected',
            "System will import data portion only as requested",
        ]
    elif detected == "structure_only":
        lines = [
            'File appears to be "Structure Only" backup',
            'System will auto-correct to "Structure Only" import',
        ]
    else:
        return None
    return "\n".join(lines)


def format_import_result(result: dict[str, Any]) -> str:
    """Renders the backend's import report for the user."""
    text = result.get("message") or "Database restored successfully"

    requested = result.get("original_requested_type")
    applied = result.get("backup_type")
    if requested and applied != requested:
        text += "\n\nAuto-Correction Applied:\n"
        text += f'- You selected: "{requested}" restore\n'
        text += f'- File detected as: "{result.get("detected_file_type")}" backup\n'
        text += f'- System auto-corrected to: "{applied}" import'

    warnings = result.get("warnings") or []
    if warnings:
        text += "\n\nImportant Notes:\n"
        for warning in warnings:
            text += f"- {warning}\n"

    if applied == "data_only":
        text += "\nData has been restored to your database."
    elif applied == "full":
        text += "\nComplete database structure and data have been restored."

    if result.get("pre_import_backup"):
        text += f"\nSafety backup created: {result['pre_import_backup']}"
    return text


def backup_file_name(backup_type: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"backup_{backup_type}_{today.isoformat()}.sql"


class SystemService:
    """Super-admin maintenance operations."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.import_progress = 0

    async def backup(self, backup_type: str, dest_dir: Path, today: Optional[date] = None) -> Path:
        """Requests a backup and saves it as `backup_{type}_{YYYY-MM-DD}.sql` in `dest_dir`.

        Uploaded files are only bundled into full backups.
        """
        if backup_type not in BACKUP_TYPES:
            raise ValidationError(f"Tipe backup tidak dikenal: {backup_type}")

        content = await self.client.download(
            Endpoint.SYSTEM_BACKUP,
            json={"type": backup_type, "include_files": backup_type == "full"},
        )

        dest_dir = Path(dest_dir)
        if not dest_dir.exists():
            dest_dir.mkdir(parents=True)
        target = dest_dir.joinpath(backup_file_name(backup_type, today))
        target.write_bytes(content)
        logger.success(f"Backup berhasil dibuat! Backup {backup_type} disimpan ke {target}.")
        return target

    async def import_backup(self, path: Path, backup_type: str = "full") -> dict[str, Any]:
        """Uploads a `.sql`/`.zip` backup to restore.

        Returns:
            dict: The backend's import report, see `format_import_result`.
        """
        path = Path(path)
        if backup_type not in BACKUP_TYPES:
            raise ValidationError(f"Tipe import tidak dikenal: {backup_type}")
        check_backup_file(path)

        warning = import_type_warning(path.name, backup_type)
        if warning:
            for line in warning.splitlines():
                logger.warning(line)

        self.import_progress = 0
        try:
            result = await self.client.post_multipart(
                Endpoint.SYSTEM_IMPORT,
                data={"type": backup_type},
                files={"backup_file": (path.name, path.read_bytes(), "application/octet-stream")},
            )
            self.import_progress = 100
        except SessionExpiredError:
            raise
        except ApiError as e:
            raise ApiError(e.status, f"Import failed: {e.message}") from e
        finally:
            self.import_progress = 0
        return result or {}

    async def reset(self, confirmation: str):
        """Deletes all data except the super-admin accounts.

        `confirmation` must be the word `reset` (any case); anything else is
        rejected before contacting the backend.
        """
        if confirmation.lower() != RESET_PHRASE:
            raise ValidationError('Konfirmasi tidak valid. Ketik "reset" untuk melanjutkan.')

        try:
            await self.client.post(Endpoint.SYSTEM_RESET)
        except SessionExpiredError:
            raise
        except ApiError as e:
            raise ApiError(e.status, f"Reset failed: {e.message}") from e
        logger.success("Sistem berhasil di-reset! Semua data telah dihapus kecuali akun Super Admin.")
